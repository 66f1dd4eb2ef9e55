from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from passlib.context import CryptContext

from edutrack import config
from edutrack.database import get_db
from edutrack.errors import AuthenticationError
from edutrack.models.user import User
from edutrack.utils.policy import Actor

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)

def normalize_email(email: str) -> str:
    return (email or "").strip().lower()

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)

def create_access_token(user: User, expires_minutes: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    minutes = config.JWT_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    claims = {
        "sub": user.id,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(claims, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)

def decode_access_token(token: str) -> str:
    """Returns the user id carried by a valid token."""
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")
    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token")
    return user_id

def get_current_user(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> User:
    if not credentials or not credentials.credentials:
        raise AuthenticationError("No token, authorization denied")
    user = db.get(User, decode_access_token(credentials.credentials))
    if not user:
        raise AuthenticationError("Invalid token")
    return user

def get_current_actor(user: User = Depends(get_current_user)) -> Actor:
    return Actor(id=user.id, email=user.email, role=user.role)
