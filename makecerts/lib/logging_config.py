"""JSON logging for the makecerts scripts.

Every script imports ``LOGGER`` from here, so a run emits one JSON object per
step (key written, certificate signed, openssl failure) on stderr.
"""

import logging

from pythonjsonlogger import jsonlogger

LOG_FIELDS = frozenset({"timestamp", "level", "message", "exc_info", "funcName", "lineno"})


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter trimmed to ``LOG_FIELDS``.

    ``levelname`` is emitted as ``level``; process, thread and module
    details are dropped.
    """

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        if "levelname" in log_record:
            log_record["level"] = log_record.pop("levelname")

        for key in [key for key in log_record if key not in LOG_FIELDS]:
            log_record.pop(key)


def _setup_logger() -> logging.Logger:
    """Attach a stderr JSON handler to the ``makecerts`` logger once."""
    logger = logging.getLogger("makecerts")

    # Module reloads must not stack handlers
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(
        CustomJsonFormatter(
            fmt="%(timestamp)s %(levelname)s %(funcName)s %(lineno)d %(message)s",
            timestamp=True,
        )
    )

    logger.setLevel(logging.INFO)
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def set_verbose(verbose: bool) -> None:
    """DEBUG shows each openssl command line and its stderr; INFO otherwise."""
    LOGGER.setLevel(logging.DEBUG if verbose else logging.INFO)


LOGGER = _setup_logger()
