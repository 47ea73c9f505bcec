"""Auth Router: email/password registration and login."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth import TokenIssuer, get_token_issuer, hash_password, verify_password
from ..database import get_db, UserCRUD
from ..errors import Conflict, InvalidCredentials, ServerError
from ..models import (
    RegisterRequest, RegisterResponse, LoginRequest, LoginResponse,
    UserPublic, UserWithKey,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", response_model=RegisterResponse)
async def register(
    request: RegisterRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
):
    """Create an account and return a bearer token for it."""
    email = request.email.strip()

    if UserCRUD.get_by_email(db, email):
        raise Conflict()

    rounds = http_request.app.state.config.auth.bcrypt_rounds
    try:
        user = UserCRUD.create(db, email=email, password_hash=hash_password(request.password, rounds))
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        raise Conflict()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Registration failed: {e}")
        raise ServerError()

    logger.info("user_registered", extra={"event": "user_registered", "user_id": user.id})
    return RegisterResponse(
        token=tokens.issue(user.id),
        user=UserPublic(id=user.id, email=user.email),
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    db: Session = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
):
    """Exchange email and password for a bearer token and the stored API key."""
    user = UserCRUD.get_by_email(db, request.email.strip())
    if not user or not verify_password(request.password, user.password_hash):
        raise InvalidCredentials()

    return LoginResponse(
        token=tokens.issue(user.id),
        user=UserWithKey(id=user.id, email=user.email, external_api_key=user.external_api_key or ""),
    )
