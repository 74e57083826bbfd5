"""Account service - registration, login and bearer-token identity.

Session tokens are random and opaque. The only way to turn one into a
user id is a lookup of the stored token record; nothing is parsed out of
the token itself.
"""

from __future__ import annotations

import base64
import logging
import secrets
from abc import ABC, abstractmethod
from typing import Any

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from mapshare.clock import now_ms
from mapshare.config import AUTH_TOKEN_TTL_SECONDS
from mapshare.errors import (
    AccountExists,
    InvalidPayload,
    MapShareError,
    RecordNotFound,
    StoreError,
    Unauthenticated,
)
from mapshare.ids import generate_id
from mapshare.keys import build_key, build_prefix
from mapshare.models.account import Account
from mapshare.services.locations import validate_coordinates
from mapshare.storage.base import BlobStore

logger = logging.getLogger(__name__)

USER_NAMESPACE = "user"
USERNAME_NAMESPACE = "username"
TOKEN_NAMESPACE = "auth_token"

_SCRYPT_N = 2**14
_SCRYPT_R = 8
_SCRYPT_P = 1
_SCRYPT_LENGTH = 32


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii")


def hash_password(password: str) -> str:
    """Hash a password as ``scrypt$<n>$<salt>$<digest>``."""
    salt = secrets.token_bytes(16)
    kdf = Scrypt(salt=salt, length=_SCRYPT_LENGTH, n=_SCRYPT_N, r=_SCRYPT_R, p=_SCRYPT_P)
    digest = kdf.derive(password.encode("utf-8"))
    return f"scrypt${_SCRYPT_N}${_b64(salt)}${_b64(digest)}"


def verify_password(password: str, stored: str) -> bool:
    """Check ``password`` against a ``hash_password`` result in constant time."""
    try:
        scheme, n, salt_b64, digest_b64 = stored.split("$")
        if scheme != "scrypt":
            return False
        salt = base64.urlsafe_b64decode(salt_b64)
        digest = base64.urlsafe_b64decode(digest_b64)
        kdf = Scrypt(salt=salt, length=len(digest), n=int(n), r=_SCRYPT_R, p=_SCRYPT_P)
    except ValueError:
        logger.warning("Unreadable password hash")
        return False
    try:
        kdf.verify(password.encode("utf-8"), digest)
    except InvalidKey:
        return False
    return True


class IdentityResolver(ABC):
    """Turns a bearer credential into the owner id that partitions records."""

    @abstractmethod
    async def resolve_owner_id(self, token: str | None) -> str:
        """Return the owner id for ``token``.

        Raises:
            Unauthenticated: token missing, unknown or expired.
        """
        ...


class AccountService(IdentityResolver):
    """Store-backed user accounts and session tokens."""

    def __init__(self, store: BlobStore, token_ttl: int = AUTH_TOKEN_TTL_SECONDS):
        self.store = store
        self.token_ttl = token_ttl

    @staticmethod
    def _username_key(username: str) -> str:
        return build_key(USERNAME_NAMESPACE, None, username.strip().lower())

    async def _load(self, user_id: str) -> Account:
        data = await self.store.get(build_key(USER_NAMESPACE, None, user_id))
        if data is None:
            raise RecordNotFound(user_id, "User not found")
        return Account.from_dict(data)

    async def _save(self, account: Account) -> None:
        await self.store.put(build_key(USER_NAMESPACE, None, account.user_id), account.to_dict())

    async def register(
        self,
        username: str,
        password: str,
        email: str | None = None,
        model_id: str | None = None,
        profile_data: dict[str, Any] | None = None,
    ) -> Account:
        """Create an account.

        Raises:
            InvalidPayload: username or password missing.
            AccountExists: username already registered.
        """
        if not username or not username.strip() or not password:
            raise InvalidPayload("Username and password required")
        account = Account(
            user_id=generate_id(12),
            username=username.strip(),
            password_hash=hash_password(password),
            email=email,
            model_id=model_id,
            created_at=now_ms(),
            profile_data=profile_data or {},
        )
        # Claiming the username first makes concurrent registrations race on one SET NX
        claimed = await self.store.put(
            self._username_key(username), {"userId": account.user_id}, if_absent=True
        )
        if not claimed:
            raise AccountExists(f"User already exists: {account.username}")
        try:
            await self._save(account)
        except MapShareError:
            # Release the claim so the username can be registered again
            try:
                await self.store.delete(self._username_key(username))
            except StoreError as e:
                logger.warning(f"Could not release username {account.username!r}: {e}")
            raise
        logger.info(f"Registered user {account.user_id} ({account.username})")
        return account

    async def login(self, username: str, password: str) -> tuple[str, Account]:
        """Check credentials and issue a session token."""
        if not username or not password:
            raise InvalidPayload("Username and password required")
        index = await self.store.get(self._username_key(username))
        if not isinstance(index, dict) or not index.get("userId"):
            raise Unauthenticated("Invalid credentials")
        try:
            account = await self._load(index["userId"])
        except RecordNotFound as e:
            raise Unauthenticated("Invalid credentials") from e
        if not verify_password(password, account.password_hash):
            raise Unauthenticated("Invalid credentials")

        token = secrets.token_urlsafe(32)
        await self.store.put(
            build_key(TOKEN_NAMESPACE, None, token),
            {"userId": account.user_id, "username": account.username, "createdAt": now_ms()},
            ttl=self.token_ttl,
        )
        logger.info(f"User {account.user_id} logged in")
        return token, account

    async def resolve_owner_id(self, token: str | None) -> str:
        if not token:
            raise Unauthenticated("Authentication required")
        session = await self.store.get(build_key(TOKEN_NAMESPACE, None, token))
        if not isinstance(session, dict) or not session.get("userId"):
            raise Unauthenticated("Invalid session")
        return session["userId"]

    async def verify(self, token: str | None) -> Account:
        """Return the account behind a session token."""
        user_id = await self.resolve_owner_id(token)
        try:
            return await self._load(user_id)
        except RecordNotFound as e:
            raise Unauthenticated("Invalid session") from e

    async def logout(self, token: str | None) -> bool:
        if not token:
            return False
        return await self.store.delete(build_key(TOKEN_NAMESPACE, None, token)) > 0

    async def profile(self, user_id: str) -> Account:
        return await self._load(user_id)

    async def list_users(self) -> list[Account]:
        keys = [key async for key in self.store.scan_prefix(build_prefix(USER_NAMESPACE, None))]
        if not keys:
            return []
        accounts = [
            Account.from_dict(value)
            for _, value in await self.store.multi_get(keys)
            if isinstance(value, dict)
        ]
        accounts.sort(key=lambda a: a.created_at)
        return accounts

    async def update_location(self, user_id: str, lat: Any, lng: Any) -> dict:
        lat_f, lng_f = validate_coordinates(lat, lng)
        account = await self._load(user_id)
        account.last_location = {"lat": lat_f, "lng": lng_f, "timestamp": now_ms()}
        await self._save(account)
        return account.last_location

    async def link_model(self, user_id: str, model_id: str) -> Account:
        if not model_id:
            raise InvalidPayload("Missing modelId")
        account = await self._load(user_id)
        account.model_id = model_id
        await self._save(account)
        return account
