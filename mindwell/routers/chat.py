"""
Chat Support Router
Relay messages to the support chatbot and manage the transcript.
"""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from mindwell.services.chat_support import ChatMessage, ChatSupportService, get_chat_support


router = APIRouter(prefix="/api/chat", tags=["Chat Support"])


# =============================================================================
# Schemas
# =============================================================================

class ChatRequest(BaseModel):
    message: str = Field("", max_length=4000)


class ChatResponse(BaseModel):
    user_message: ChatMessage
    bot_message: ChatMessage
    fallback: bool = Field(..., description="True when the bot reply is the offline apology")


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/", response_model=ChatResponse)
async def send_message(
    body: ChatRequest,
    chat: ChatSupportService = Depends(get_chat_support),
):
    exchange = await chat.send(body.message)
    return ChatResponse(
        user_message=exchange.user_message,
        bot_message=exchange.bot_message,
        fallback=exchange.fallback,
    )


@router.get("/history", response_model=list[ChatMessage])
async def get_history(chat: ChatSupportService = Depends(get_chat_support)):
    return await chat.history()


@router.delete("/history", status_code=status.HTTP_204_NO_CONTENT)
async def clear_history(chat: ChatSupportService = Depends(get_chat_support)):
    await chat.clear()
