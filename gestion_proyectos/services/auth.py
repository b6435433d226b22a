"""Authentication service: user management and JWT tokens."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from sqlalchemy.orm import Session

from gestion_proyectos.config import get_settings
from gestion_proyectos.models.user import ROLE_USER, User

# JWT configuration
ALGORITHM = "HS256"


def create_user(
    db: Session,
    usuario: str,
    password: str,
    *,
    nombre: str = "",
    email: str | None = None,
    rol: str = ROLE_USER,
) -> User:
    """Create a new user with hashed password."""
    user = User(usuario=usuario, nombre=nombre or usuario, email=email, rol=rol)
    user.set_password(password)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def authenticate_user(db: Session, usuario: str, password: str) -> Optional[User]:
    """Validate credentials and return user, or None if invalid."""
    user = db.query(User).filter(User.usuario == usuario).first()
    if user is None:
        return None
    if not user.verify_password(password):
        return None
    return user


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT access token."""
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(hours=settings.access_token_expire_hours)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT token. Returns payload or None."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        return None


def token_for_user(user: User) -> str:
    return create_access_token(data={"sub": user.usuario, "rol": user.rol})


def get_user_from_token(db: Session, token: str) -> Optional[User]:
    """Extract user from a JWT token. Returns None if token invalid or user not found."""
    payload = decode_access_token(token)
    if payload is None:
        return None
    usuario: Optional[str] = payload.get("sub")
    if usuario is None:
        return None
    return db.query(User).filter(User.usuario == usuario).first()
