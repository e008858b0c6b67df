"""Unit tests for auth/store.py, auth/tokens.py, and auth/accounts.py.

Covers:
- UserStore create/get/email_exists and the UNIQUE email constraint
- Password hashing round trip and timing-equalized authenticate_user()
- TokenService issue/validate/revoke, including idempotent revoke and
  multiple concurrent sessions for one user
- register_user(): duplicate email -> ConflictError; concurrent duplicate
  registrations against a file-backed DB produce exactly one account
"""

import threading

import pytest
from sqlalchemy.exc import IntegrityError

from auth.accounts import register_user
from auth.models import User
from auth.store import UserStore
from auth.tokens import TOKEN_PREFIX, TokenService, authenticate_user, hash_password, hash_token, verify_password
from core.errors import ConflictError


def _user(email="ada@example.com", password="correct-horse"):
    return User(name="Ada Lovelace", email=email, hashed_password=hash_password(password))


# ---------------------------------------------------------------------------
# UserStore
# ---------------------------------------------------------------------------


class TestUserStore:
    def test_create_and_fetch(self, user_store):
        uid = user_store.create_user(_user())
        by_id = user_store.get_by_id(uid)
        by_email = user_store.get_by_email("ada@example.com")
        assert by_id == by_email
        assert by_id.name == "Ada Lovelace"
        assert by_id.created_at and by_id.updated_at

    def test_missing_user_returns_none(self, user_store):
        assert user_store.get_by_id(12345) is None
        assert user_store.get_by_email("ghost@example.com") is None

    def test_email_exists(self, user_store):
        user_store.create_user(_user())
        assert user_store.email_exists("ada@example.com")
        assert not user_store.email_exists("other@example.com")

    def test_duplicate_email_violates_unique_constraint(self, user_store):
        user_store.create_user(_user())
        with pytest.raises(IntegrityError):
            user_store.create_user(_user())


# ---------------------------------------------------------------------------
# Passwords and login
# ---------------------------------------------------------------------------


class TestPasswords:
    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("wrong-pass", hashed)

    def test_verify_against_garbage_hash_is_false(self):
        assert not verify_password("anything", "not-a-bcrypt-hash")

    def test_authenticate_user(self, user_store):
        user_store.create_user(_user())
        assert authenticate_user(user_store, "ada@example.com", "correct-horse").email == "ada@example.com"
        assert authenticate_user(user_store, "ada@example.com", "wrong-horse") is None
        assert authenticate_user(user_store, "nobody@example.com", "correct-horse") is None


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class TestTokenService:
    @pytest.fixture
    def user(self, user_store):
        user = _user()
        user.id = user_store.create_user(user)
        return user

    def test_issue_returns_opaque_prefixed_token(self, user_store, user):
        raw = TokenService(user_store).issue(user)
        assert raw.startswith(TOKEN_PREFIX)
        assert len(raw) == len(TOKEN_PREFIX) + 64
        stored = user_store.get_token_by_hash(hash_token(raw))
        assert stored.user_id == user.id
        assert stored.token_hash != raw

    def test_validate_resolves_user(self, user_store, user):
        tokens = TokenService(user_store)
        session = tokens.validate(tokens.issue(user))
        assert session is not None
        assert session.user.id == user.id
        assert user_store.get_token_by_hash(session.token.token_hash).last_used_at is not None

    @pytest.mark.parametrize("raw", [None, "", "garbage", f"{TOKEN_PREFIX}{'0' * 64}"])
    def test_validate_rejects_unknown(self, user_store, raw):
        assert TokenService(user_store).validate(raw) is None

    def test_revoke_is_idempotent(self, user_store, user):
        tokens = TokenService(user_store)
        raw = tokens.issue(user)
        session = tokens.validate(raw)
        tokens.revoke(session.token.id)
        assert tokens.validate(raw) is None
        tokens.revoke(session.token.id)

    def test_multiple_sessions_coexist(self, user_store, user):
        tokens = TokenService(user_store)
        first, second = tokens.issue(user), tokens.issue(user)
        assert first != second
        first_session, second_session = tokens.validate(first), tokens.validate(second)
        assert first_session.token.id != second_session.token.id
        assert first_session.user.id == second_session.user.id == user.id
        tokens.revoke(tokens.validate(first).token.id)
        assert tokens.validate(second) is not None


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


class TestRegisterUser:
    def test_register_hashes_password(self, user_store):
        user = register_user(user_store, "Ada Lovelace", "ada@example.com", "password123")
        assert user.id is not None
        assert user.hashed_password != "password123"
        assert verify_password("password123", user.hashed_password)

    def test_duplicate_email_raises_conflict(self, user_store):
        register_user(user_store, "Ada Lovelace", "ada@example.com", "password123")
        with pytest.raises(ConflictError) as excinfo:
            register_user(user_store, "Someone Else", "ada@example.com", "password456")
        assert excinfo.value.field == "email"

    def test_concurrent_duplicates_have_single_winner(self, tmp_path):
        """Simultaneous registrations with one email: exactly one succeeds.

        A file-backed DB gives every thread its own connection, so the
        inserts genuinely race and the UNIQUE constraint picks the winner.
        """
        store = UserStore(f"sqlite:///{tmp_path / 'race.db'}")
        attempts = 8
        barrier = threading.Barrier(attempts)
        outcomes: list[str] = []
        lock = threading.Lock()

        def attempt(i: int) -> None:
            barrier.wait()
            try:
                register_user(store, "Racer", "race@example.com", f"password-{i}")
                result = "created"
            except ConflictError:
                result = "conflict"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=attempt, args=(i,)) for i in range(attempts)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        store.close()

        assert outcomes.count("created") == 1
        assert outcomes.count("conflict") == attempts - 1
