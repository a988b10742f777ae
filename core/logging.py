"""
Console logging with per-request correlation fields.

Every record carries the storefront request id and, once a route binds it,
the Yuno checkout session it is working on, so a vendor failure can be
matched to the browser request that caused it.
"""
import logging
from contextvars import ContextVar
from typing import Optional

from colorlog import ColoredFormatter

NO_CONTEXT = "-"

request_id_ctx: ContextVar[str] = ContextVar("request_id", default=NO_CONTEXT)
checkout_session_ctx: ContextVar[str] = ContextVar("checkout_session", default=NO_CONTEXT)

LOG_FORMAT = (
    "%(log_color)s%(levelname)-8s%(reset)s | "
    "%(blue)s%(asctime)s%(reset)s | "
    "%(purple)s%(request_id)s%(reset)s "
    "%(cyan)ssession=%(checkout_session)s%(reset)s | "
    "%(green)s%(name)s:%(lineno)d%(reset)s | "
    "%(message)s"
)

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "white",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red,bg_white",
}


class CorrelationFilter(logging.Filter):
    """Copy the current request id and checkout session onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get()
        record.checkout_session = checkout_session_ctx.get()
        return True


def bind_checkout_session(checkout_session: Optional[str]) -> None:
    checkout_session_ctx.set(checkout_session or NO_CONTEXT)


def setup_logger(level=logging.INFO) -> logging.Logger:
    root = logging.getLogger()
    root.setLevel(level)

    # uvicorn --reload imports the app again; keep a single handler
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.addFilter(CorrelationFilter())
    handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt="%d-%m-%Y %H:%M:%S", log_colors=LOG_COLORS))
    root.addHandler(handler)

    return root
