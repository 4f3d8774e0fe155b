"""
Utility functions
"""

import argparse
import os
import pathlib
import re
from typing import Callable, Optional, TypeVar

from .logging import get_logger

__version__ = "0.1.0"

logger = get_logger(__name__)

T = TypeVar("T")
U = TypeVar("U")

LABEL_UNSAFE_PAT = re.compile(r"[^A-Za-z0-9._-]")


def opt_map(value: Optional[T], fn: Callable[[T], U]) -> Optional[U]:
    """Apply `fn` to an optional value, propagating None"""
    if value is None:
        return None
    return fn(value)


def opt_bind(
    value: Optional[T], fn: Callable[[T], Optional[U]]
) -> Optional[U]:
    """Chain an optional value into a function returning an optional"""
    if value is None:
        return None
    return fn(value)


def sanitize_label(label: str) -> str:
    """Make a save label usable as a file name"""
    return LABEL_UNSAFE_PAT.sub("_", label)


def env_path(var: str, default: str) -> pathlib.Path:
    """A path from the environment with a fallback"""
    value = os.getenv(var)
    if value:
        logger.debug("Using %s from the environment: %s", var, value)
        return pathlib.Path(value)
    return pathlib.Path(default)


def path_arg(
    exists: Optional[bool] = None,
    is_dir: Optional[bool] = None,
    is_file: Optional[bool] = None,
) -> Callable[[str], pathlib.Path]:
    """pathlib checked types for argparse"""

    def _path_arg(arg: str) -> pathlib.Path:
        p = pathlib.Path(arg)

        attrs = [exists, is_dir, is_file]
        attr_names = ["exists", "is_dir", "is_file"]

        for attr_val, attr_name in zip(attrs, attr_names):
            if attr_val is None:  # Skip attributes that are not defined
                continue

            m = getattr(p, attr_name)
            if m() != attr_val:
                raise argparse.ArgumentTypeError(
                    "The supplied path argument needs the attribute"
                    f" {attr_name}={attr_val}, but {attr_name}={m()}"
                )
        return p

    return _path_arg
