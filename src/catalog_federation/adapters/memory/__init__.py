from .operators import (
    NativeMemoryOperator,
    NativeOperatorRegistry,
    build_native_registry,
)
from .transport import InMemoryCatalogTransport

__all__ = [
    "InMemoryCatalogTransport",
    "NativeMemoryOperator",
    "NativeOperatorRegistry",
    "build_native_registry",
]
