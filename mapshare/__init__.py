"""
mapshare - storage backend for a collaborative map and location-sharing app.

Saved map states, user accounts, shared map sessions and live locations,
all kept in one hosted key-value store reached over REST.
"""

from mapshare._core import MapShare, get_store
from mapshare.errors import (
    AccountExists,
    ConfigError,
    InvalidPayload,
    MapShareError,
    RecordNotFound,
    ResourceExhausted,
    StoreError,
    StoreUnavailable,
    Unauthenticated,
)
from mapshare.models import Account, Record

__version__ = "0.1.0"

__all__ = [
    "Account",
    "AccountExists",
    "ConfigError",
    "InvalidPayload",
    "MapShare",
    "MapShareError",
    "Record",
    "RecordNotFound",
    "ResourceExhausted",
    "StoreError",
    "StoreUnavailable",
    "Unauthenticated",
    "get_store",
]
