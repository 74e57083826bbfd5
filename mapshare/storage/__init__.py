"""Blob store abstraction and the Upstash REST implementation."""

from mapshare.storage.base import BlobStore
from mapshare.storage.upstash import UpstashStore

__all__ = ["BlobStore", "UpstashStore"]
