# routes/copilot.py: AI copilot conversations inside a workspace
from datetime import datetime
from fastapi import APIRouter, HTTPException, Depends, status
from sqlmodel import Session, select
from typing import List

from core.database import get_session
from core.security import EnterpriseAccess, require_enterprise_role, require_plan
from models.models import ChatMessage, ChatRole, Conversation, PlanType, TeamRole
from schemas.copilot_schema import ChatMessageCreate, ChatMessageRead, ConversationCreate, ConversationRead

import logging
logger = logging.getLogger(__name__)

# Every route needs a paid CRM plan as well as a viewer seat in the workspace.
router = APIRouter(tags=["Copilot"], dependencies=[Depends(require_plan(PlanType.CRM_BASIC))])

can_view = require_enterprise_role(TeamRole.VIEWER)


def _own_conversation(session: Session, access: EnterpriseAccess, conversation_id: int) -> Conversation:
    conversation = session.get(Conversation, conversation_id)
    if (
        not conversation
        or conversation.enterprise_id != access.enterprise.id
        or conversation.user_id != access.user.id
    ):
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


@router.get("/{enterprise_id}/ai/conversations", response_model=List[ConversationRead])
def list_conversations(
    access: EnterpriseAccess = Depends(can_view),
    session: Session = Depends(get_session),
):
    return session.exec(
        select(Conversation)
        .where(Conversation.enterprise_id == access.enterprise.id, Conversation.user_id == access.user.id)
        .order_by(Conversation.last_message_at.desc(), Conversation.id.desc())
    ).all()


@router.post("/{enterprise_id}/ai/conversations", response_model=ConversationRead, status_code=status.HTTP_201_CREATED)
def create_conversation(
    data: ConversationCreate,
    access: EnterpriseAccess = Depends(can_view),
    session: Session = Depends(get_session),
):
    conversation = Conversation(
        user_id=access.user.id,
        enterprise_id=access.enterprise.id,
        title=data.title or "New conversation",
    )
    session.add(conversation)
    session.commit()
    session.refresh(conversation)
    return conversation


@router.get("/{enterprise_id}/ai/conversations/{conversation_id}/messages", response_model=List[ChatMessageRead])
def list_messages(
    conversation_id: int,
    access: EnterpriseAccess = Depends(can_view),
    session: Session = Depends(get_session),
):
    conversation = _own_conversation(session, access, conversation_id)
    return session.exec(
        select(ChatMessage)
        .where(ChatMessage.conversation_id == conversation.id)
        .order_by(ChatMessage.created_at, ChatMessage.id)
    ).all()


@router.post(
    "/{enterprise_id}/ai/conversations/{conversation_id}/messages",
    response_model=ChatMessageRead,
    status_code=status.HTTP_201_CREATED,
)
def add_message(
    conversation_id: int,
    data: ChatMessageCreate,
    access: EnterpriseAccess = Depends(can_view),
    session: Session = Depends(get_session),
):
    """Store the member's message. Generating the assistant reply happens elsewhere."""
    conversation = _own_conversation(session, access, conversation_id)
    now = datetime.utcnow()
    message = ChatMessage(
        conversation_id=conversation.id,
        role=ChatRole.USER.value,
        content=data.content,
        message_metadata=data.metadata,
        created_at=now,
    )
    conversation.last_message_at = now
    conversation.updated_at = now
    session.add(message)
    session.add(conversation)
    session.commit()
    session.refresh(message)
    return message
