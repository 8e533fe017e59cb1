"""PIN authentication for the family account.

The PIN is the account password: hashed with passlib, exchanged for a
bearer JWT (python-jose) that every other endpoint requires.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ..core.clock import utcnow
from ..models import User
from ..settings import settings

logger = logging.getLogger("recipebox.auth")


class AuthenticationError(Exception):
    """Bad PIN, bad token or missing account."""
    pass


class PinValidationError(ValueError):
    pass


pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_pin(pin: str) -> str:
    return pwd_context.hash(pin)


def verify_pin(pin: str, pin_hash: str) -> bool:
    return pwd_context.verify(pin, pin_hash)


def validate_pin(pin: str) -> None:
    if len(pin) < settings.min_pin_length:
        raise PinValidationError(f"PIN must be at least {settings.min_pin_length} characters")


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    now = utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode: Dict[str, Any] = {"sub": user_id, "exp": expire, "iat": now, "type": "access"}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """Return the user id carried by a valid access token."""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise AuthenticationError(f"Invalid token: {e}")

    if payload.get("type") != "access" or not payload.get("sub"):
        raise AuthenticationError("Invalid token payload")
    return payload["sub"]


def get_family_user(db: Session) -> Optional[User]:
    return db.query(User).filter(User.email == settings.family_email).first()


def create_family_user(db: Session, pin: str) -> User:
    validate_pin(pin)
    user = User(email=settings.family_email, pin_hash=hash_pin(pin))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created family account {user.id}")
    return user


def authenticate(db: Session, pin: str) -> User:
    user = get_family_user(db)
    if not user or not verify_pin(pin, user.pin_hash):
        logger.warning("Failed PIN login attempt")
        raise AuthenticationError("Invalid PIN")
    return user


def change_pin(db: Session, user: User, current_pin: str, new_pin: str) -> None:
    if not verify_pin(current_pin, user.pin_hash):
        raise AuthenticationError("Current PIN is incorrect")
    validate_pin(new_pin)
    user.pin_hash = hash_pin(new_pin)
    db.commit()
    logger.info(f"PIN changed for user {user.id}")
