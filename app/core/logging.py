import logging
import sys
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="n/a")


class RequestIdFilter(logging.Filter):
    """Stamp every record with the id of the request being served."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "rid"):
            record.rid = request_id_var.get()
        return True


def configure_logging(level: str = "INFO"):
    logger = logging.getLogger()
    logger.setLevel(level)
    if logger.handlers:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    formatter = logging.Formatter("%(asctime)s %(levelname)s rid=%(rid)s %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
