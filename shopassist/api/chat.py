from fastapi import APIRouter, Depends

from shopassist.dependencies import get_assistant
from shopassist.models.schemas import ChatRequest, ChatResponse
from shopassist.services.assistant import ShoppingAssistant

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    assistant: ShoppingAssistant = Depends(get_assistant),
):
    return await assistant.handle_message(request.message, request.session_id)
