"""Published content snapshot: validated records and providers."""

from .schemas import ContentSnapshot
from .provider import ContentProvider, StaticContentProvider, JsonContentProvider

__all__ = [
    "ContentSnapshot",
    "ContentProvider",
    "StaticContentProvider",
    "JsonContentProvider",
]
