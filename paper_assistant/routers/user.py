"""User Router: the caller's profile and stored chat provider key."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db, User, UserCRUD
from ..errors import ServerError
from ..models import ApiKeyUpdateRequest, MessageResponse, UserWithKey

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["User"])


@router.put("/api-key", response_model=MessageResponse)
async def update_api_key(
    request: ApiKeyUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Overwrite the caller's external API key. The key is not validated."""
    try:
        UserCRUD.set_api_key(db, current_user, request.key)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"API key update failed: {e}")
        raise ServerError()

    logger.info("api_key_updated", extra={"event": "api_key_updated", "user_id": current_user.id})
    return MessageResponse(message="API key updated successfully")


@router.get("/me", response_model=UserWithKey)
async def get_me(current_user: User = Depends(get_current_user)):
    return UserWithKey(
        id=current_user.id,
        email=current_user.email,
        external_api_key=current_user.external_api_key or "",
    )
