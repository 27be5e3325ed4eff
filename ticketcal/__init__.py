"""TicketCal: turn ticket PDFs into calendar event files."""

__version__ = "0.1.0"
