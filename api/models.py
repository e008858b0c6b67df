"""
API response models for the catalog REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
catalog/models.py, which own the internal domain representation. Route
handlers map between the two.

Every body follows one envelope:
    {"status": "success" | "error", "message"?, "errors"?, "error"?, <entity>?}

Request bodies are not modelled here: they are plain JSON objects checked by
core/validation.py so that every field's failures are collected with their
own messages.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from auth.models import User
from catalog.models import Product

# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user. It has no password field."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    created_at: str
    updated_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            created_at=user.created_at or "",
            updated_at=user.updated_at or "",
        )


class ProductResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    price: float
    description: str
    created_at: str
    updated_at: str

    @classmethod
    def from_product(cls, product: Product) -> "ProductResponse":
        """Factory Method: the mapping lives beside the output model, not in each route."""
        return cls(
            id=product.id,
            name=product.name,
            price=product.price,
            description=product.description,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


class MessageEnvelope(BaseModel):
    """Success body that carries only a message (logout, delete)."""

    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    message: str


class UserEnvelope(BaseModel):
    """Response for POST /register."""

    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    message: str
    user: UserResponse


class LoginEnvelope(BaseModel):
    """Response for POST /login. token is the plaintext bearer token, shown once."""

    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    message: str
    user: UserResponse
    token: str
    token_type: str = "bearer"


class ProductEnvelope(BaseModel):
    """Response for show/create/update. message is omitted on show."""

    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    message: Optional[str] = None
    product: ProductResponse


class ProductListEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    products: list[ProductResponse]


class ErrorEnvelope(BaseModel):
    """Body for every 4xx/5xx response.

    errors -- field name -> ordered messages (422 only).
    error  -- diagnostic text from the persistence layer (500 store errors only).
    """

    model_config = ConfigDict(frozen=True)

    status: Literal["error"] = "error"
    message: str
    errors: Optional[dict[str, list[str]]] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
