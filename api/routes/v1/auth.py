"""
api/routes/v1/auth.py -- Registration, login, and logout endpoints.

Routes:
  POST /register  -- create an account (public)
  POST /login     -- exchange email + password for a bearer token (public)
  POST /logout    -- revoke the caller's current token (requires auth)

Security:
  POST /login and POST /register are rate-limited per client IP. The route
  decorator must wrap the limiter decorator so FastAPI registers the checked
  function; SlowAPIMiddleware skips endpoints marked by @limiter.limit.
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_email() + verify_password().
  Unknown email and wrong password produce the same 401 body.
  Cache-Control: no-store on register and login responses.
"""

import logging
from functools import partial
from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginEnvelope, MessageEnvelope, UserEnvelope, UserResponse
from api.rules import LOGIN_RULES, register_rules
from auth.accounts import register_user
from auth.dependencies import get_current_session, get_token_service
from auth.models import AuthSession
from auth.store import UserStore
from auth.tokens import TokenService, authenticate_user
from core.config import get_settings
from core.errors import AuthenticationFailed, ConflictError, ValidationFailed
from core.messages import Translator
from core.validation import validated

logger = logging.getLogger("catalogapi.api")

_settings = get_settings()

# Auth policy:
# - POST /register: public -- account creation
# - POST /login:    public -- login endpoint must be unauthenticated
# - POST /logout:   requires auth (get_current_session) -- revokes that token
router = APIRouter()


def _payload(body: Any) -> dict:
    """Treat anything but a JSON object as an empty body so required-field errors surface."""
    return body if isinstance(body, dict) else {}


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/register", response_model=UserEnvelope, status_code=201)
@limiter.limit(_settings.register_rate_limit)
def register(request: Request, body: Any = Body(default=None)) -> JSONResponse:
    """Create an account from name, email, password, and password_confirmation.

    The unique() rule rejects an already-registered email up front. A
    concurrent duplicate that gets past it is stopped by the UNIQUE
    constraint and reported on the same field with the same message.
    """
    user_store: UserStore = request.app.state.user_store
    t: Translator = request.app.state.translator

    data = validated(
        _payload(body),
        register_rules(user_store),
        partial(t.rule_message, "register"),
        t("validation_failed"),
    )
    try:
        user = register_user(user_store, data["name"], data["email"], data["password"])
    except ConflictError as exc:
        raise ValidationFailed(
            t("validation_failed"),
            {exc.field: [t.rule_message("register", exc.field, "unique")]},
        ) from exc

    resp = JSONResponse(
        status_code=201,
        content=UserEnvelope(message=t("register_success"), user=UserResponse.from_user(user)).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/login", response_model=LoginEnvelope)
@limiter.limit(_settings.login_rate_limit)
def login(
    request: Request,
    body: Any = Body(default=None),
    tokens: TokenService = Depends(get_token_service),
) -> JSONResponse:
    """Authenticate with email and password; return the user and a new bearer token.

    Every successful login issues an additional token. Earlier tokens for
    the same user stay valid until they are logged out.
    """
    user_store: UserStore = request.app.state.user_store
    t: Translator = request.app.state.translator

    data = validated(_payload(body), LOGIN_RULES, partial(t.rule_message, "login"), t("login_invalid"))
    user = authenticate_user(user_store, data["email"], data["password"])
    if user is None:
        logger.warning("Failed login attempt from %s", request.client.host if request.client else "unknown")
        raise AuthenticationFailed(t("login_failed"))

    token = tokens.issue(user)
    resp = JSONResponse(
        status_code=200,
        content=LoginEnvelope(
            message=t("login_success"),
            user=UserResponse.from_user(user),
            token=token,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.post("/logout", response_model=MessageEnvelope)
def logout(
    request: Request,
    session: AuthSession = Depends(get_current_session),
    tokens: TokenService = Depends(get_token_service),
) -> MessageEnvelope:
    """Revoke the token that authenticated this request. Other tokens stay valid."""
    t: Translator = request.app.state.translator
    tokens.revoke(session.token.id)
    logger.info("User %s logged out", session.user.id)
    return MessageEnvelope(message=t("logout_success"))
