"""
auth/accounts.py -- Account registration.

register_user() hashes the password and inserts the row. It does
not check for an existing email first: the UNIQUE constraint on
users.email decides the race, and the losing insert surfaces as
ConflictError("email"). The route layer has usually already rejected the
duplicate through the unique() validation rule; this path covers the
concurrent case that slips between that check and the INSERT.

bcrypt runs before any database work and holds no lock, so concurrent
registrations hash in parallel.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.store import UserStore
from auth.tokens import hash_password
from core.errors import ConflictError, StoreError

logger = logging.getLogger("catalogapi.auth")


def register_user(store: UserStore, name: str, email: str, password: str) -> User:
    """Create an account and return the stored User.

    Raises ConflictError("email") if the email is already registered.
    """
    user = User(name=name, email=email, hashed_password=hash_password(password))
    try:
        user_id = store.create_user(user)
    except IntegrityError as exc:
        logger.info("Registration rejected: email already registered")
        raise ConflictError("email") from exc

    created = store.get_by_id(user_id)
    if created is None:
        raise StoreError("Database error", detail=f"user {user_id} not found after insert")
    logger.info("Registered user id=%s", created.id)
    return created
