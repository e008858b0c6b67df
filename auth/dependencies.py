"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The caller is identified by the standard header:
    Authorization: Bearer <token>

get_token_service() builds the TokenService around the shared UserStore.
try_get_current_session() is the soft variant (returns None on failure).
get_current_session() wraps it and raises Unauthenticated (401).
get_current_user() narrows the session to its User for handlers that do not
need the token row.

Layer rule: no imports from api/ or catalog/.
  auth/dependencies.py may import from fastapi (for Depends/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, Request

from auth.models import AuthSession, User
from auth.tokens import TokenService
from core.errors import Unauthenticated
from core.messages import Translator


def get_token_service(request: Request) -> TokenService:
    return TokenService(request.app.state.user_store)


def bearer_token(request: Request) -> str | None:
    """Extract the raw token from an Authorization: Bearer header."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, credentials = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()


def try_get_current_session(
    request: Request,
    tokens: TokenService = Depends(get_token_service),
) -> AuthSession | None:
    """Attempt to authenticate the request. Never raises."""
    return tokens.validate(bearer_token(request))


def get_current_session(
    request: Request,
    session: AuthSession | None = Depends(try_get_current_session),
) -> AuthSession:
    """Require authentication. Raises Unauthenticated if the token is missing or revoked.

    Use as a FastAPI dependency:
        @router.post("/logout")
        def route(session: AuthSession = Depends(get_current_session)): ...
    """
    if session is None:
        translator: Translator = request.app.state.translator
        raise Unauthenticated(translator("unauthenticated"))
    return session


def get_current_user(session: AuthSession = Depends(get_current_session)) -> User:
    """Require authentication and return the caller.

    Use as a FastAPI dependency or a router-level dependency:
        router = APIRouter(dependencies=[Depends(get_current_user)])
    """
    return session.user
