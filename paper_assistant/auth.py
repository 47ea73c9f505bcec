"""Authentication Module for the Paper Assistant API

Provides bcrypt password hashing, signed bearer tokens, and the FastAPI
dependency that resolves the calling user.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
from jose import JWTError, jwt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from .database import get_db, User, UserCRUD
from .errors import Unauthorized, InvalidToken

logger = logging.getLogger(__name__)

# Security scheme for FastAPI; missing headers are reported by get_current_user
security = HTTPBearer(auto_error=False)


# ============================================================================
# PASSWORD UTILITIES
# ============================================================================

def hash_password(password: str, rounds: int = 10) -> str:
    """Hash a password using bcrypt."""
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError as e:
        logger.error(f"Password verification error: {e}")
        return False


# ============================================================================
# TOKENS
# ============================================================================

class TokenIssuer:
    """Issues and verifies HS256 bearer tokens carrying a user id.

    Tokens carry no expiry unless ``expire_minutes`` is set.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256",
                 expire_minutes: Optional[int] = None):
        if not secret_key:
            raise ValueError("A secret key is required to sign tokens")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, user_id: int) -> str:
        """Create a signed token for a user."""
        now = datetime.utcnow()
        to_encode = {
            "sub": str(user_id),
            "iat": now,
        }
        if self.expire_minutes:
            to_encode["exp"] = now + timedelta(minutes=self.expire_minutes)

        return jwt.encode(to_encode, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: Optional[str]) -> int:
        """
        Validate a token and return the user id it carries.

        Raises:
            Unauthorized: If no token was given
            InvalidToken: If the token is malformed, forged, expired or has no user id
        """
        if not token:
            raise Unauthorized()

        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.debug(f"Token decode error: {e}")
            raise InvalidToken()

        try:
            return int(payload.get("sub"))
        except (TypeError, ValueError):
            raise InvalidToken()


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def token_from_header(authorization: Optional[str]) -> Optional[str]:
    """Second word of an Authorization header, whatever its scheme."""
    parts = (authorization or "").split()
    return parts[1] if len(parts) > 1 else None


# ============================================================================
# AUTHENTICATION DEPENDENCIES
# ============================================================================

async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    Raises:
        Unauthorized: If no bearer token was sent
        InvalidToken: If the token does not verify or its user is gone
    """
    # HTTPBearer yields None for other schemes; their token still gets verified
    token = credentials.credentials if credentials else token_from_header(request.headers.get("Authorization"))
    user_id = tokens.verify(token)

    user = UserCRUD.get_by_id(db, user_id)
    if not user:
        logger.warning(f"Token for unknown user id {user_id}")
        raise InvalidToken()

    return user
