import logging
import os
import re
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [region=%(region)s] - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

MASK = '***MASKED***'

# Keys whose values must never reach the log (bus credentials travel through config)
_SENSITIVE_KEYS = ('token', 'authorization', 'secret', 'credentials?', 'password')

_KEY_VALUE_PATTERN = re.compile(
    r'((?:' + '|'.join(_SENSITIVE_KEYS) + r')["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)',
    re.IGNORECASE
)
_BEARER_PATTERN = re.compile(r'(bearer\s+)([^\s,}\'"]+)', re.IGNORECASE)


def mask_sensitive(text: str) -> str:
    text = _BEARER_PATTERN.sub(r'\1' + MASK, text)
    return _KEY_VALUE_PATTERN.sub(r'\1' + MASK, text)


class SensitiveDataFilter(logging.Filter):
    """Filter to mask bus credentials and tokens in log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = mask_sensitive(record.msg)

        if isinstance(record.args, dict):
            record.args = {k: self._mask(v) for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self._mask(arg) for arg in record.args)

        return True

    @staticmethod
    def _mask(value):
        return mask_sensitive(value) if isinstance(value, str) else value


class RegionContextFilter(logging.Filter):
    """Stamps every record with the region this process replicates for."""

    def __init__(self, region: Optional[str] = None):
        super().__init__()
        self.region = region or '-'

    def filter(self, record: logging.LogRecord) -> bool:
        record.region = self.region
        return True


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None,
    region: Optional[str] = None
) -> logging.Logger:
    """
    Configure the stdout handler of a component logger.

    Module loggers below the component (`replicator.replication.applier`, ...)
    propagate to it. Calling again for a configured component only updates
    the level.

    Args:
        component_name: Name of the component (e.g., 'replicator')
        log_level: DEBUG, INFO, WARNING or ERROR; falls back to the LOG_LEVEL env var, then INFO
        region: Region shown in every line until `set_region` changes it

    Returns:
        Component logger
    """
    level_name = (log_level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(component_name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(RegionContextFilter(region))
    handler.addFilter(SensitiveDataFilter())

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_region(logger: logging.Logger, region: Optional[str]) -> None:
    """Change the region stamped on lines written by the logger's handlers."""
    for handler in logger.handlers:
        for log_filter in handler.filters:
            if isinstance(log_filter, RegionContextFilter):
                log_filter.region = region or '-'
