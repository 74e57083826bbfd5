"""
Health check helpers for the key-value store.

Used by /api/health to populate components: {config, store}. Every check
returns a bool and never raises.
"""
import logging

from mapshare.config import get_store_settings
from mapshare.errors import ConfigError, MapShareError
from mapshare.storage.base import BlobStore

logger = logging.getLogger(__name__)


def check_store_config() -> bool:
    """True when store URL and token are present and well-formed."""
    try:
        get_store_settings()
        return True
    except ConfigError:
        return False


async def check_store(store: BlobStore) -> bool:
    """True when the store answers a PING."""
    try:
        return await store.ping()
    except MapShareError as e:
        logger.warning(f"Store health check failed: {e}")
        return False
