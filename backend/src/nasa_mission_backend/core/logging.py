"""Logging setup and access-log line rendering."""

from __future__ import annotations

import logging
import sys

from nasa_mission_backend.core.models import AccessRecord

ACCESS_LOGGER_NAME = "nasa_mission_backend.access"
_ACCESS_HANDLER_NAME = "access-stdout"

access_logger = logging.getLogger(ACCESS_LOGGER_NAME)


def configure_logging(level: str = "INFO") -> None:
    """Route application logs and the access log to standard output.

    Application loggers share the root handler. The access logger gets its own
    handler that writes the bare line, so every request is exactly one line
    of output.
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("nasa_mission_backend").setLevel(level)

    access_logger.setLevel(logging.INFO)
    access_logger.propagate = False
    if not any(handler.get_name() == _ACCESS_HANDLER_NAME for handler in access_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(_ACCESS_HANDLER_NAME)
        handler.setFormatter(logging.Formatter("%(message)s"))
        access_logger.addHandler(handler)


def _or_dash(value: object) -> str:
    return "-" if value is None or value == "" else str(value)


def _clf_date(record: AccessRecord) -> str:
    return record.finished_at.strftime("%d/%b/%Y:%H:%M:%S %z")


def format_access_line(fmt: str, record: AccessRecord) -> str:
    """Render ``record`` in one of the ``combined``, ``common`` or ``dev`` layouts."""
    if fmt == "dev":
        return (
            f"{record.method} {record.url} {_or_dash(record.status)} "
            f"{record.response_time_ms:.3f} ms - {_or_dash(record.content_length)}"
        )

    common = (
        f'{_or_dash(record.remote_addr)} - - [{_clf_date(record)}] '
        f'"{record.method} {record.url} HTTP/{record.http_version}" '
        f"{_or_dash(record.status)} {_or_dash(record.content_length)}"
    )
    if fmt == "common":
        return common
    if fmt == "combined":
        return f'{common} "{_or_dash(record.referrer)}" "{_or_dash(record.user_agent)}"'
    raise ValueError(f"Unknown access log format '{fmt}'")
