"""Support chat history routes. Replies are written by an external assistant."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.core.database import get_db
from careconnect.core.deps import get_current_user
from careconnect.modules.chat.models import ChatMessage
from careconnect.modules.chat.schemas import ChatMessageCreate, ChatMessagePublic
from careconnect.modules.users.models import User
from careconnect.shared.enums import ChatRole

router = APIRouter(prefix="/api/v1/chat", tags=["chat"])


@router.get("", response_model=list[ChatMessagePublic])
async def list_messages(
    limit: int = Query(100, gt=0, le=500),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[ChatMessage]:
    stmt = (
        select(ChatMessage)
        .where(ChatMessage.user_id == current_user.user_id)
        .order_by(ChatMessage.created_at, ChatMessage.message_id)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


@router.post("", response_model=ChatMessagePublic, status_code=status.HTTP_201_CREATED)
async def post_message(
    payload: ChatMessageCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ChatMessage:
    message = ChatMessage(user_id=current_user.user_id, content=payload.content, role=ChatRole.USER)
    db.add(message)
    await db.commit()
    await db.refresh(message)
    return message
