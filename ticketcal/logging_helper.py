"""
Logging helper module for terminal-first logging.
All output goes to stdout with formatted prefixes, and also to a log file
once one has been configured.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

_log_file: Optional[TextIO] = None
_log_file_path: Optional[Path] = None


def configure_log_file(log_dir: Path) -> Path:
    """
    Open a timestamped log file under log_dir and mirror all output to it.

    Args:
        log_dir: Directory to create the log file in (created if missing)

    Returns:
        Path to the opened log file
    """
    global _log_file, _log_file_path

    close_log_file()
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    _log_file_path = log_dir / f"ticketcal_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
    _log_file = open(_log_file_path, 'a', encoding='utf-8')
    return _log_file_path


def close_log_file() -> None:
    global _log_file, _log_file_path

    if _log_file is not None:
        _log_file.close()
    _log_file = None
    _log_file_path = None


def _log(message: str):
    """Write message to stdout and, if configured, the log file."""
    print(message, flush=True)
    if _log_file is not None:
        _log_file.write(message + '\n')
        _log_file.flush()


class Log:
    """Simple logging class that outputs to stdout and log file with formatted prefixes."""

    @staticmethod
    def section(title: str):
        """Print a section header: blank line + '===== TITLE ====='"""
        _log("")
        _log(f"===== {title} =====")

    @staticmethod
    def info(message: str):
        """Print an info message: '[INFO] message'"""
        _log(f"[INFO] {message}")

    @staticmethod
    def warn(message: str):
        """Print a warning message: '[WARN] message'"""
        _log(f"[WARN] {message}")

    @staticmethod
    def error(message: str):
        """Print an error message: '[ERROR] message'"""
        _log(f"[ERROR] {message}")

    @staticmethod
    def kv(pairs: dict):
        """
        Print key-value pairs: '[KV] key=value | key2=value2'

        Args:
            pairs: Dictionary of key-value pairs to print
        """
        kv_string = " | ".join([f"{k}={v}" for k, v in pairs.items()])
        _log(f"[KV] {kv_string}")

    @staticmethod
    def get_log_path() -> Optional[str]:
        """Get the path to the current log file, if one is open."""
        return str(_log_file_path) if _log_file_path else None
