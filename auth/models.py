"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in catalog/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    hashed_password is a bcrypt hash and is never serialized to clients --
    api/models.UserResponse has no field for it.
    """

    name: str
    email: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class AccessToken:
    """An opaque bearer credential issued at login.

    Security design:
    - token_hash is HMAC-SHA256(SECRET_KEY, raw_token). The deterministic hash
      lets the store do an O(1) lookup through the UNIQUE index. Tokens carry
      256 bits of entropy, so bcrypt-style slowness is unnecessary.
    - token_prefix (first 12 chars of the raw token) is kept for display and
      log correlation only.
    - The raw token is never persisted. It is returned ONCE by login.
    - Revocation deletes the row; there is no expiry.
    """

    user_id: int
    token_hash: str
    token_prefix: str
    name: str = "auth_token"
    id: int | None = None
    created_at: str | None = None
    last_used_at: str | None = None


@dataclass
class AuthSession:
    """A resolved bearer token: the caller and the token row that admitted them."""

    user: User
    token: AccessToken
