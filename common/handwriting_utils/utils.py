import os
import logging
import datetime
import hashlib


def setup_logging(level=None):
    """
    Configure simple logging for API and front end.
    The level can be overridden with LOG_LEVEL.
    """
    if level is None:
        level = get_env("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(message)s",
        level=level,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger()


def get_env(key: str, default=None):
    """
    Read an environment variable, falling back to default when unset.
    """
    return os.getenv(key, default)


def get_env_first(*keys: str, default=None):
    """
    Return the first non-empty value among several environment variables.
    """
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return default


def get_timestamp():
    """
    Current timestamp in ISO 8601, used in API responses.
    """
    return datetime.datetime.now().isoformat()


def compute_file_hash(file_bytes: bytes, algorithm: str = "md5") -> str:
    """
    Short content fingerprint for log lines (never used for security).
    """
    return hashlib.new(algorithm, file_bytes).hexdigest()[:12]
