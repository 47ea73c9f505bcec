"""Chat Router: single-turn research assistant."""

from fastapi import APIRouter, Depends, Request

from ..auth import get_current_user
from ..chat import ChatService
from ..database import User
from ..models import ChatRequest, ChatResponse

router = APIRouter(prefix="/api", tags=["Chat"])


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    """Send one message to the research assistant and return its reply."""
    answer = await service.reply(current_user, request.message)
    return ChatResponse(response=answer)
