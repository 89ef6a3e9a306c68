# routes/subscription.py: plans, billing status, Stripe webhooks, AI usage
import json
import logging
from typing import List

import stripe
from fastapi import APIRouter, HTTPException, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlmodel import Session, select

from core.config import settings
from core.database import get_session
from core.security import get_current_user
from models.models import AiUsageLog, User
from schemas.subscription_schema import (
    CancelResponse, PlanRead, SubscriptionRead, SubscriptionStatusResponse,
    UsageCreate, UsageLogRead, UsageResponse,
)
from services.ai_billing import InsufficientTokensError, record_usage, reset_monthly_usage_if_due
from services.subscription_service import SubscriptionError, SubscriptionService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Subscription"])


# ======================================================
# ✅ Plans
# ======================================================
@router.get("/plans", response_model=List[PlanRead])
def list_plans(session: Session = Depends(get_session)):
    return SubscriptionService.list_active_plans(session)


# ======================================================
# ✅ Current user's billing status
# ======================================================
@router.get("/status", response_model=SubscriptionStatusResponse)
def subscription_status(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if reset_monthly_usage_if_due(current_user):
        session.add(current_user)
        session.commit()
        session.refresh(current_user)
    return SubscriptionService.build_status(session, current_user)


# ======================================================
# ✅ Cancel at period end
# ======================================================
@router.post("/cancel", response_model=CancelResponse, status_code=status.HTTP_200_OK)
def cancel_subscription(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    try:
        subscription = SubscriptionService.cancel_subscription(session, current_user)
    except SubscriptionError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except stripe.StripeError as e:
        logger.error(f"❌ Stripe error while canceling: {e}")
        raise HTTPException(status_code=502, detail="Billing provider error. Please try again later.")

    result = SubscriptionRead.model_validate(subscription)
    result.plan_type = subscription.plan.plan_type if subscription.plan else None
    return CancelResponse(
        message="Subscription will be canceled at the end of the billing period",
        subscription=result,
    )


# ======================================================
# ✅ Stripe webhook
# ======================================================
@router.post("/webhook")
async def stripe_webhook(request: Request, session: Session = Depends(get_session)):
    """Handle Stripe webhook events for subscription updates"""
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    webhook_secret = settings.STRIPE_WEBHOOK_SECRET

    if not webhook_secret:
        logger.error("❌ STRIPE_WEBHOOK_SECRET not configured")
        return JSONResponse(status_code=500, content={"detail": "Webhook secret not configured"})

    if not sig_header:
        return JSONResponse(status_code=400, content={"detail": "Missing stripe-signature header"})

    try:
        stripe.Webhook.construct_event(payload=payload, sig_header=sig_header, secret=webhook_secret)
    except ValueError:
        return JSONResponse(status_code=400, content={"detail": "Invalid payload"})
    except stripe.SignatureVerificationError:
        logger.warning("❌ Invalid webhook signature")
        return JSONResponse(status_code=400, content={"detail": "Invalid signature"})

    # Signature verified; work on the plain JSON body
    event = json.loads(payload)
    event_type = event.get("type")
    logger.info(f"✅ Webhook received: {event_type}")

    try:
        processed = SubscriptionService.process_webhook_event(session, event)
    except Exception as e:
        logger.exception(f"❌ Error processing webhook event {event_type}")
        return JSONResponse(status_code=500, content={"detail": f"Error processing event: {e}"})

    return {"status": "success" if processed else "duplicate", "event": event_type}


# ======================================================
# ✅ Metered AI usage
# ======================================================
@router.post("/usage", response_model=UsageLogRead, status_code=status.HTTP_201_CREATED)
def report_usage(
    data: UsageCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    try:
        return record_usage(
            session,
            current_user,
            operation_type=data.operation_type,
            tokens_used=data.tokens_used,
            cost=data.cost,
            entity_type=data.entity_type,
            entity_id=data.entity_id,
            metadata=data.metadata,
        )
    except InsufficientTokensError as e:
        raise HTTPException(status_code=403, detail=e.message)


@router.get("/usage", response_model=UsageResponse)
def usage_summary(
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    logs = session.exec(
        select(AiUsageLog)
        .where(AiUsageLog.user_id == current_user.id)
        .order_by(AiUsageLog.created_at.desc(), AiUsageLog.id.desc())
        .limit(limit)
    ).all()
    return UsageResponse(
        usage=SubscriptionService.build_user_status(current_user),
        logs=[UsageLogRead.model_validate(log) for log in logs],
    )
