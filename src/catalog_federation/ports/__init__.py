from .transport import ICatalogTransport

__all__ = [
    "ICatalogTransport",
]
