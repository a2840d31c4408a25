import logging

from flask import has_request_context, request

from .config_db import resolve_log_level

LOG_FORMAT = "[%(asctime)s] %(levelname)s in %(module)s %(method)s %(path)s: %(message)s"


class RequestContextFilter(logging.Filter):
    """Tambahkan method dan path request ke log record bila ada."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.method = request.method
            record.path = request.path
        else:
            record.method = "-"
            record.path = "-"
        return True


def setup_logging(app) -> None:
    log_level = getattr(logging, resolve_log_level(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # create_app bisa dipanggil berkali-kali (test), cukup satu handler
    if not any(getattr(h, "_showroom_handler", False) for h in root_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(RequestContextFilter())
        handler._showroom_handler = True
        root_logger.addHandler(handler)

    app.logger.setLevel(log_level)
    app.logger.propagate = True
