from .bounded import BoundedTransport
from .memory import InMemoryCatalogTransport

__all__ = [
    "BoundedTransport",
    "InMemoryCatalogTransport",
]
