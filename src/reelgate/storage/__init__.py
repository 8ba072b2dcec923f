"""Storage layer: object store backends and the relocation cache."""

from reelgate.storage.object_store import (
    LocalObjectStore,
    ObjectStore,
    S3ObjectStore,
    StoredObject,
    get_object_store,
)
from reelgate.storage.relocation_cache import RelocationCache, RelocationClaim

__all__ = [
    "LocalObjectStore",
    "ObjectStore",
    "S3ObjectStore",
    "StoredObject",
    "get_object_store",
    "RelocationCache",
    "RelocationClaim",
]
