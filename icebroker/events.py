import logging
from typing import Any, Optional

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def log_event(
    logger: logging.Logger,
    level: str,
    event: str,
    message: str,
    domain: str = "webrtc",
    **meta: Any,
) -> None:
    """
    Emit a structured log event.

    The text reads "[domain:event] message"; event, domain and meta are also
    attached to the LogRecord so handlers can route on them.
    """
    extra: dict[str, Any] = {"event": event, "domain": domain, "meta": meta}
    text = f"[{domain}:{event}] {message}"
    if meta:
        text += f" {meta}"
    logger.log(LEVELS[level], text, extra=extra)


def log_fetch_error(logger: logging.Logger, error: Exception, meta: Optional[dict] = None) -> None:
    event = getattr(error, "event", "fetch_error_unknown")
    level = getattr(error, "severity", "warn")
    log_event(logger, level, event, str(error), **(meta or {}))
