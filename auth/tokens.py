"""
auth/tokens.py -- Password hashing, access-token issuance, and login checks.

Security design decisions:
  Passwords: bcrypt, used directly. The cost factor comes from
       Settings.bcrypt_rounds. The _DUMMY_HASH constant enables timing
       equalization in authenticate_user() so response time does not reveal
       whether an email is registered.

  Access tokens: "pc_" + secrets.token_hex(32) gives 256 bits of entropy --
       brute-force is computationally infeasible. We store
       HMAC-SHA256(SECRET_KEY, raw_token) so lookup is O(1). bcrypt's
       intentional slowness is unnecessary here. Tokens never expire; logout
       deletes the row.

  SECRET_KEY: sourced from core.config.get_settings(). The Settings class
       validates the key at startup.

Layer rule: no imports from api/ or catalog/. Import from core/ is allowed --
core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from typing import TYPE_CHECKING

import bcrypt

from auth.models import AccessToken, AuthSession
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("catalogapi.auth")

_settings = get_settings()

TOKEN_PREFIX = "pc_"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Passwords longer than 72 bytes are silently truncated by bcrypt (a known
    bcrypt limitation). The register rule set caps passwords at 255
    characters; only the first 72 bytes participate in the hash.
    """
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8")[:72], salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8")[:72], hashed.encode("utf-8"))
    except ValueError:
        return False


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("catalogapi_timing_dummy")


# ---------------------------------------------------------------------------
# User authentication (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Authenticate an email/password login with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure. Callers must answer
    both failures with the same status and message.
    """
    user = store.get_by_email(email)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ---------------------------------------------------------------------------
# Access tokens
# ---------------------------------------------------------------------------


def generate_token() -> str:
    """Generate a new access token in the format: pc_<64 hex chars>."""
    return f"{TOKEN_PREFIX}{secrets.token_hex(32)}"


def hash_token(raw_token: str) -> str:
    """Return HMAC-SHA256(SECRET_KEY, raw_token) as a hex string.

    Using SECRET_KEY as the HMAC key means an attacker who obtains the DB
    cannot match leaked rows to tokens without also knowing SECRET_KEY.
    """
    return hmac.new(
        _settings.secret_key.encode(),
        raw_token.encode(),
        hashlib.sha256,
    ).hexdigest()


class TokenService:
    """Issues, validates, and revokes opaque bearer tokens.

    Injected into route handlers through auth.dependencies so no handler
    reaches for ambient session state.

    Usage:
        tokens = TokenService(user_store)
        raw = tokens.issue(user)
        session = tokens.validate(raw)      # AuthSession or None
        tokens.revoke(session.token.id)
    """

    def __init__(self, store: UserStore) -> None:
        self.store = store

    def issue(self, user: User) -> str:
        """Persist a new token bound to user and return the plaintext once."""
        raw_token = generate_token()
        token = AccessToken(
            user_id=user.id,
            token_hash=hash_token(raw_token),
            token_prefix=raw_token[:12],
        )
        token.id = self.store.create_token(token)
        logger.info("Issued access token %s for user %s", token.token_prefix, user.id)
        return raw_token

    def validate(self, raw_token: str | None) -> AuthSession | None:
        """Resolve a raw token to its session. Returns None on any failure."""
        if not raw_token or not raw_token.startswith(TOKEN_PREFIX):
            return None
        token = self.store.get_token_by_hash(hash_token(raw_token))
        if token is None:
            return None
        user = self.store.get_by_id(token.user_id)
        if user is None:
            return None
        self.store.touch_token(token.id)
        return AuthSession(user=user, token=token)

    def revoke(self, token_id: int) -> None:
        """Delete the token row. Revoking an already-revoked token is a no-op."""
        if self.store.delete_token(token_id):
            logger.info("Revoked access token id=%s", token_id)
