import json
import logging
import sys
import time
import traceback
import uuid
from datetime import datetime, timezone

from flask import g, request

# request headers are never logged
EXTRA_FIELDS = (
    "request_id", "user_id", "method", "path", "status_code",
    "duration_ms", "cart_id", "order_id",
)


class JSONFormatter(logging.Formatter):
    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": self.service_name,
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
        }

        for name in EXTRA_FIELDS:
            if hasattr(record, name):
                log_obj[name] = getattr(record, name)

        # Exception Info
        if record.exc_info:
            log_obj["exception"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(log_obj, default=str)


def setup_logging(service_name: str, level="INFO", json_output=True):
    logger = logging.getLogger()
    logger.setLevel(level)

    # clear existing handlers
    if logger.handlers:
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JSONFormatter(service_name))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)

    return logging.getLogger(service_name)


def init_request_logging(app, service_name: str):
    logger = logging.getLogger(service_name)

    @app.before_request
    def _start_timer():
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        g.request_started = time.time()

    @app.after_request
    def _log_request(response):
        duration = (time.time() - g.get("request_started", time.time())) * 1000
        extra = {
            "request_id": g.get("request_id"),
            "method": request.method,
            "path": request.path,
            "status_code": response.status_code,
            "duration_ms": round(duration, 2),
            "cart_id": request.headers.get("X-Cart-Id"),
        }
        if response.status_code >= 500:
            logger.error("Request Failed", extra=extra)
        elif response.status_code >= 400:
            logger.warning("Request Error", extra=extra)
        else:
            logger.info("Request Processed", extra=extra)

        if g.get("request_id"):
            response.headers["X-Request-ID"] = g.request_id
        return response
