"""Tests for page rendering and image encoding."""

import base64
import io
from unittest.mock import patch

import pytest
from pdf2image.exceptions import PDFPageCountError
from PIL import Image

from ticketcal.errors import RenderError
from ticketcal.ticket_renderer import image_to_data_uri, render_first_page


def test_directory_is_a_render_error(tmp_path):
    with pytest.raises(RenderError) as excinfo:
        render_first_page(tmp_path)
    assert excinfo.value.path == str(tmp_path)


def test_missing_file_is_a_render_error(tmp_path):
    with pytest.raises(RenderError):
        render_first_page(tmp_path / "nope.pdf")


def test_poppler_failure_is_a_render_error(tmp_path):
    bogus = tmp_path / "ticket.pdf"
    bogus.write_bytes(b"not a pdf")
    with patch("ticketcal.ticket_renderer.convert_from_path", side_effect=PDFPageCountError("bad")):
        with pytest.raises(RenderError):
            render_first_page(bogus)


def test_only_first_page_is_requested(tmp_path, blank_image):
    ticket = tmp_path / "ticket.pdf"
    ticket.write_bytes(b"%PDF-1.4")
    with patch("ticketcal.ticket_renderer.convert_from_path", return_value=[blank_image]) as convert:
        assert render_first_page(ticket) is blank_image
    _, kwargs = convert.call_args
    assert kwargs["first_page"] == 1
    assert kwargs["last_page"] == 1


def test_no_pages_is_a_render_error(tmp_path):
    ticket = tmp_path / "ticket.pdf"
    ticket.write_bytes(b"%PDF-1.4")
    with patch("ticketcal.ticket_renderer.convert_from_path", return_value=[]):
        with pytest.raises(RenderError):
            render_first_page(ticket)


def test_data_uri_is_jpeg():
    image = Image.new("RGBA", (10, 10), (255, 0, 0, 128))
    uri = image_to_data_uri(image)
    prefix = "data:image/jpeg;base64,"
    assert uri.startswith(prefix)
    decoded = Image.open(io.BytesIO(base64.b64decode(uri[len(prefix):])))
    assert decoded.format == "JPEG"
    assert decoded.size == (10, 10)
