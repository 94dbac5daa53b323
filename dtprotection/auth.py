from datetime import datetime, timedelta
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from . import models
from .config import SECRET_KEY, ALGORITHM, JWT_EXPIRES_HOURS, CLIENT_TOKEN_EXPIRE_DAYS
from .database import get_db

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Missing headers are reported as 401 below instead of FastAPI's default
security = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against its bcrypt hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password"""
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT"""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(hours=JWT_EXPIRES_HOURS)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def create_admin_token(admin: models.Admin) -> str:
    return create_access_token(
        data={
            "id": admin.id,
            "username": admin.username,
            "email": admin.email,
            "role": admin.role,
            "type": "admin",
        },
        expires_delta=timedelta(hours=JWT_EXPIRES_HOURS),
    )


def create_client_token(booking: models.Booking) -> str:
    return create_access_token(
        data={"clientId": booking.id, "email": booking.email, "type": "client"},
        expires_delta=timedelta(days=CLIENT_TOKEN_EXPIRE_DAYS),
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(credentials: Optional[HTTPAuthorizationCredentials], token_type: str) -> dict:
    """Decode a bearer token of the given type or raise 401"""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Access token required")

    try:
        payload = jwt.decode(credentials.credentials, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except JWTError:
        raise _unauthorized("Invalid token")

    if payload.get("type") != token_type:
        raise _unauthorized("Invalid token")

    return payload


def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> models.Admin:
    """Resolve the admin behind the bearer token"""
    payload = decode_token(credentials, "admin")

    admin = db.query(models.Admin).filter(models.Admin.id == payload.get("id")).first()
    if admin is None or not admin.is_active:
        raise _unauthorized("Invalid or inactive admin account")

    return admin


def require_super_admin(admin: models.Admin = Depends(get_current_admin)) -> models.Admin:
    """Only super admins may manage other admin accounts"""
    if admin.role != "super_admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions"
        )
    return admin


def get_current_client(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """Client identity from a portal token: ``{"id", "email"}``"""
    payload = decode_token(credentials, "client")

    client_id = payload.get("clientId")
    email = payload.get("email")
    if not client_id or not email:
        raise _unauthorized("Invalid token")

    return {"id": client_id, "email": email}
