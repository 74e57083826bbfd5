"""Stored record types."""

from mapshare.models.account import Account
from mapshare.models.record import Record

__all__ = ["Account", "Record"]
