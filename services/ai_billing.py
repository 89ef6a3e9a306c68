# services/ai_billing.py
"""Metered AI usage: monthly token quota per user plus a usage ledger."""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlmodel import Session

from core.roles import is_admin
from models.models import AiUsageLog, User
from services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)


class InsufficientTokensError(Exception):
    def __init__(self, message: str = "Insufficient AI token quota. Please upgrade your plan."):
        super().__init__(message)
        self.message = message


def reset_monthly_usage_if_due(user: User, now: Optional[datetime] = None) -> bool:
    """Zero the monthly counter once a new calendar month has started."""
    now = now or datetime.utcnow()
    last = user.last_token_usage_reset
    if last is not None and (last.year, last.month) == (now.year, now.month):
        return False
    user.token_usage_this_month = 0
    user.last_token_usage_reset = now
    return True


def check_token_quota(user: User, estimated_tokens: int = 0) -> bool:
    # Admins are never metered
    if is_admin(user):
        return True
    used = user.token_usage_this_month or 0
    limit = user.token_quota_limit or 0
    if used >= limit:
        return False
    return used + max(estimated_tokens, 0) <= limit


def record_usage(
    session: Session,
    user: User,
    operation_type: str,
    tokens_used: int,
    cost: Optional[int] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AiUsageLog:
    """
    Charge ``tokens_used`` against the user's monthly quota and log it.

    Admin usage is logged but not charged.
    """
    if reset_monthly_usage_if_due(user):
        logger.info(f"🔄 Monthly token usage reset for user {user.id}")

    if not check_token_quota(user, tokens_used):
        session.commit()
        raise InsufficientTokensError()

    if not is_admin(user):
        user.token_usage_this_month = (user.token_usage_this_month or 0) + tokens_used
        user.updated_at = datetime.utcnow()
        session.add(user)

    subscription = SubscriptionService.get_active_subscription(session, user.id)
    log = AiUsageLog(
        user_id=user.id,
        subscription_id=subscription.id if subscription else None,
        operation_type=operation_type,
        tokens_used=tokens_used,
        cost=cost,
        entity_type=entity_type,
        entity_id=entity_id,
        usage_metadata=metadata,
    )
    session.add(log)
    session.commit()
    session.refresh(log)
    logger.info(f"[AI Billing] {tokens_used} tokens for user {user.id}, operation: {operation_type}")
    return log
