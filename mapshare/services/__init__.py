"""Domain services built on the blob store."""

from mapshare.services.accounts import AccountService, IdentityResolver
from mapshare.services.locations import LocationService
from mapshare.services.sessions import MapSessionService
from mapshare.services.state import StateService

__all__ = [
    "AccountService",
    "IdentityResolver",
    "LocationService",
    "MapSessionService",
    "StateService",
]
