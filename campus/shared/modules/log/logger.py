"""
Shared logging utilities for the backend.
"""
import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class _ContextAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        prefix = " ".join(f"[{k}={v}]" for k, v in self.extra.items())
        return f"{prefix} {msg}", kwargs


def configure_logging(level="INFO"):
    """
    Install a single stream handler on the root logger.

    Safe to call more than once; later calls only change the level.
    """
    root = logging.getLogger()
    if not any(getattr(h, "_campus_handler", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._campus_handler = True
        root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)


def get_logger(service_name, context=None):
    """
    Get a logger for a module or service.

    Args:
        service_name: Logger name, usually ``__name__``
        context: Optional dict rendered as ``[key=value]`` before each message

    Returns:
        logging.Logger or logging.LoggerAdapter
    """
    logger = logging.getLogger(service_name)
    if context:
        return _ContextAdapter(logger, dict(context))
    return logger
