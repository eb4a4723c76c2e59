"""Abstract (federation-side) type system."""

from __future__ import annotations

from .defaults import BASE_TYPE, ROOT_TYPE, default_typedef_store, default_typedefs
from .store import TypeDef, TypeDefCategory, TypeDefStore

__all__ = [
    "BASE_TYPE",
    "ROOT_TYPE",
    "TypeDef",
    "TypeDefCategory",
    "TypeDefStore",
    "default_typedef_store",
    "default_typedefs",
]
