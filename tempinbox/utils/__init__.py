"""Utility modules."""

from tempinbox.utils.addresses import split_address
from tempinbox.utils.identifiers import ENCODINGS, generate_token
from tempinbox.utils.logger import get_logger

__all__ = [
    "ENCODINGS",
    "generate_token",
    "split_address",
    "get_logger",
]
