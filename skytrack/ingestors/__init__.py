"""Feed clients that write into the shared track table."""

from .base import Client
from .dump1090 import Dump1090Reader, entity_key, extract_fields, merge_update

__all__ = [
    "Client",
    "Dump1090Reader",
    "entity_key",
    "extract_fields",
    "merge_update",
]
