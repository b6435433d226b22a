"""Authentication schemas."""

from __future__ import annotations

from pydantic import Field

from gestion_proyectos.schemas.base import CamelModel


class LoginRequest(CamelModel):
    """Schema for login credentials."""

    usuario: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class UserRead(CamelModel):
    """Schema for reading user info (response)."""

    id: int
    nombre: str
    usuario: str
    email: str | None = None
    rol: str


class TokenResponse(CamelModel):
    """Schema for JWT token response."""

    access_token: str
    token_type: str = "bearer"
    user: UserRead
