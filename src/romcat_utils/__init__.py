"""Utility helpers shared across the romcat codebase."""

from .config import AppConfig, load_config
from .logging import configure_logging, get_logger
from .parallel import run_in_executor
from .paths import normalise_path, path_to_uri, uri_to_path

__all__ = [
    "AppConfig",
    "load_config",
    "configure_logging",
    "get_logger",
    "normalise_path",
    "path_to_uri",
    "uri_to_path",
    "run_in_executor",
]
