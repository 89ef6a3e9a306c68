# ================================================================
# services/subscription_service.py: plans, subscriptions, webhooks
# ================================================================
import json
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import stripe
from sqlmodel import Session, select

from core.config import settings
from core.plans import tokens_remaining, usage_percentage, is_subscription_active
from models.models import (
    PlanType, Subscription, SubscriptionPlan, SubscriptionStatus, User, UserRole, WebhookEvent,
)
from schemas.subscription_schema import (
    SubscriptionRead, SubscriptionStatusResponse, SubscriptionUserStatus,
)

logger = logging.getLogger(__name__)

# ------------------------
# STRIPE CONFIG
# ------------------------
stripe.api_key = settings.STRIPE_SECRET_KEY

ACTIVE_STATUS_VALUES = (SubscriptionStatus.TRIAL.value, SubscriptionStatus.ACTIVE.value)

# Stripe reports a few statuses under different names
STRIPE_STATUS_MAP = {
    "trialing": SubscriptionStatus.TRIAL.value,
    "active": SubscriptionStatus.ACTIVE.value,
    "past_due": SubscriptionStatus.PAST_DUE.value,
    "canceled": SubscriptionStatus.CANCELED.value,
    "unpaid": SubscriptionStatus.UNPAID.value,
    "incomplete": SubscriptionStatus.INCOMPLETE.value,
    "incomplete_expired": SubscriptionStatus.INCOMPLETE_EXPIRED.value,
}

# Plans that come with CRM Pro screens
CRM_PRO_PLANS = (PlanType.CRM_PRO.value, PlanType.BUILD_PRO_BUNDLE.value)


class SubscriptionError(Exception):
    """Raised for billing state transitions that cannot be applied."""


def _from_timestamp(value: Optional[int]) -> Optional[datetime]:
    return datetime.utcfromtimestamp(value) if value else None


class SubscriptionService:
    """
    Billing state transitions. The ``User`` row mirrors the plan type, status,
    period end and token quota of its single active subscription.
    """

    # ----------------------------------------------------------
    # Plans
    # ----------------------------------------------------------
    @staticmethod
    def list_active_plans(session: Session) -> List[SubscriptionPlan]:
        return session.exec(
            select(SubscriptionPlan)
            .where(SubscriptionPlan.is_active == True)  # noqa: E712
            .order_by(SubscriptionPlan.display_order)
        ).all()

    @staticmethod
    def get_plan_by_type(session: Session, plan_type: str) -> Optional[SubscriptionPlan]:
        return session.exec(
            select(SubscriptionPlan).where(SubscriptionPlan.plan_type == plan_type)
        ).first()

    # ----------------------------------------------------------
    # Subscriptions
    # ----------------------------------------------------------
    @staticmethod
    def get_active_subscription(session: Session, user_id: int) -> Optional[Subscription]:
        return session.exec(
            select(Subscription)
            .where(
                Subscription.user_id == user_id,
                Subscription.status.in_(ACTIVE_STATUS_VALUES),
            )
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        ).first()

    @staticmethod
    def get_latest_subscription(session: Session, user_id: int) -> Optional[Subscription]:
        return session.exec(
            select(Subscription)
            .where(Subscription.user_id == user_id)
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        ).first()

    @staticmethod
    def get_by_stripe_id(session: Session, stripe_subscription_id: str) -> Optional[Subscription]:
        return session.exec(
            select(Subscription).where(Subscription.stripe_subscription_id == stripe_subscription_id)
        ).first()

    @staticmethod
    def activate_subscription(
        session: Session,
        user: User,
        plan: SubscriptionPlan,
        *,
        stripe_subscription_id: Optional[str] = None,
        stripe_customer_id: Optional[str] = None,
        stripe_price_id: Optional[str] = None,
        status: str = SubscriptionStatus.ACTIVE.value,
        period_start: Optional[datetime] = None,
        period_end: Optional[datetime] = None,
        is_yearly: bool = False,
        amount_paid: Optional[int] = None,
    ) -> Subscription:
        """
        Start ``plan`` for ``user``. Any other trial/active subscription of the
        user is canceled first: a user holds at most one of them.
        """
        now = datetime.utcnow()
        period_start = period_start or now
        period_end = period_end or period_start + timedelta(days=365 if is_yearly else 30)

        others = session.exec(
            select(Subscription).where(
                Subscription.user_id == user.id,
                Subscription.status.in_(ACTIVE_STATUS_VALUES),
            )
        ).all()
        for previous in others:
            if stripe_subscription_id and previous.stripe_subscription_id == stripe_subscription_id:
                continue
            previous.status = SubscriptionStatus.CANCELED.value
            previous.canceled_at = now
            previous.updated_at = now
            session.add(previous)
            logger.info(f"🔁 Replaced subscription {previous.id} for user {user.id}")

        subscription = None
        if stripe_subscription_id:
            subscription = SubscriptionService.get_by_stripe_id(session, stripe_subscription_id)
        if subscription is None:
            subscription = Subscription(user_id=user.id, plan_id=plan.id)

        subscription.plan_id = plan.id
        subscription.stripe_subscription_id = stripe_subscription_id
        subscription.stripe_customer_id = stripe_customer_id
        subscription.stripe_price_id = stripe_price_id
        subscription.status = status
        subscription.current_period_start = period_start
        subscription.current_period_end = period_end
        subscription.is_yearly = is_yearly
        subscription.cancel_at = None
        subscription.canceled_at = None
        if amount_paid is not None:
            subscription.last_payment_amount = amount_paid
            subscription.last_payment_at = now
        subscription.updated_at = now
        session.add(subscription)

        user.current_plan_type = plan.plan_type
        user.subscription_status = status
        user.subscription_current_period_end = period_end
        user.stripe_subscription_id = stripe_subscription_id
        if stripe_customer_id:
            user.stripe_customer_id = stripe_customer_id
        user.token_quota_limit = plan.token_quota_limit
        if plan.plan_type in CRM_PRO_PLANS and user.role == UserRole.FREE.value:
            user.role = UserRole.CRM_PRO.value
        user.updated_at = now
        session.add(user)

        session.commit()
        session.refresh(subscription)
        logger.info(f"✅ User {user.id} is now on plan {plan.plan_type} ({status})")
        return subscription

    @staticmethod
    def revert_to_free(session: Session, subscription: Subscription) -> None:
        """Close ``subscription`` and put its user back on the free plan."""
        now = datetime.utcnow()
        subscription.status = SubscriptionStatus.CANCELED.value
        subscription.canceled_at = now
        subscription.updated_at = now
        session.add(subscription)

        user = session.get(User, subscription.user_id)
        if user:
            free_plan = SubscriptionService.get_plan_by_type(session, PlanType.FREE.value)
            user.current_plan_type = PlanType.FREE.value
            user.subscription_status = SubscriptionStatus.CANCELED.value
            user.subscription_current_period_end = None
            user.stripe_subscription_id = None
            user.token_quota_limit = free_plan.token_quota_limit if free_plan else settings.FREE_TOKEN_QUOTA
            if user.role == UserRole.CRM_PRO.value:
                user.role = UserRole.FREE.value
            user.updated_at = now
            session.add(user)

        session.commit()
        logger.info(f"🗑️ Subscription {subscription.id} ended, user {subscription.user_id} back on free")

    @staticmethod
    def mark_past_due(session: Session, stripe_subscription_id: str) -> Optional[Subscription]:
        subscription = SubscriptionService.get_by_stripe_id(session, stripe_subscription_id)
        if not subscription:
            logger.warning(f"⚠️ Payment failed for unknown subscription {stripe_subscription_id}")
            return None

        subscription.status = SubscriptionStatus.PAST_DUE.value
        subscription.updated_at = datetime.utcnow()
        session.add(subscription)

        user = session.get(User, subscription.user_id)
        if user:
            user.subscription_status = SubscriptionStatus.PAST_DUE.value
            user.updated_at = datetime.utcnow()
            session.add(user)

        session.commit()
        logger.warning(f"⚠️ Subscription {stripe_subscription_id} is past due")
        return subscription

    @staticmethod
    def sync_subscription(session: Session, stripe_subscription: Dict[str, Any]) -> Optional[Subscription]:
        """Apply a ``customer.subscription.updated`` payload."""
        subscription = SubscriptionService.get_by_stripe_id(session, stripe_subscription["id"])
        if not subscription:
            logger.warning(f"⚠️ Update for unknown subscription {stripe_subscription['id']}")
            return None

        status = STRIPE_STATUS_MAP.get(stripe_subscription.get("status"), subscription.status)
        subscription.status = status
        subscription.current_period_start = (
            _from_timestamp(stripe_subscription.get("current_period_start")) or subscription.current_period_start
        )
        subscription.current_period_end = (
            _from_timestamp(stripe_subscription.get("current_period_end")) or subscription.current_period_end
        )
        subscription.cancel_at = _from_timestamp(stripe_subscription.get("cancel_at"))
        subscription.updated_at = datetime.utcnow()
        session.add(subscription)

        user = session.get(User, subscription.user_id)
        if user:
            user.subscription_status = status
            user.subscription_current_period_end = subscription.current_period_end
            user.updated_at = datetime.utcnow()
            session.add(user)

        session.commit()
        session.refresh(subscription)
        return subscription

    @staticmethod
    def cancel_subscription(session: Session, user: User) -> Subscription:
        """Schedule cancellation of the active subscription at its period end."""
        subscription = SubscriptionService.get_active_subscription(session, user.id)
        if not subscription:
            raise SubscriptionError("No active subscription found")

        if settings.STRIPE_ENABLED and subscription.stripe_subscription_id:
            stripe.Subscription.modify(subscription.stripe_subscription_id, cancel_at_period_end=True)
        elif not settings.STRIPE_ENABLED:
            logger.warning("⚠️ Stripe not configured: cancellation recorded locally only")

        subscription.cancel_at = subscription.current_period_end
        subscription.updated_at = datetime.utcnow()
        session.add(subscription)
        session.commit()
        session.refresh(subscription)
        logger.info(f"✅ Subscription {subscription.id} will cancel at {subscription.cancel_at}")
        return subscription

    # ----------------------------------------------------------
    # Status view
    # ----------------------------------------------------------
    @staticmethod
    def build_user_status(user: User) -> SubscriptionUserStatus:
        return SubscriptionUserStatus(
            current_plan_type=user.current_plan_type or PlanType.FREE.value,
            subscription_status=user.subscription_status,
            subscription_current_period_end=user.subscription_current_period_end,
            token_usage_this_month=user.token_usage_this_month,
            token_quota_limit=user.token_quota_limit,
            tokens_remaining=tokens_remaining(user),
            usage_percentage=usage_percentage(user),
            is_active=is_subscription_active(user),
        )

    @staticmethod
    def build_status(session: Session, user: User) -> SubscriptionStatusResponse:
        subscription = SubscriptionService.get_active_subscription(session, user.id)
        if subscription is None:
            subscription = SubscriptionService.get_latest_subscription(session, user.id)

        subscription_read = None
        if subscription:
            subscription_read = SubscriptionRead.model_validate(subscription)
            subscription_read.plan_type = subscription.plan.plan_type if subscription.plan else None

        return SubscriptionStatusResponse(
            user=SubscriptionService.build_user_status(user),
            subscription=subscription_read,
        )

    # ----------------------------------------------------------
    # Webhooks
    # ----------------------------------------------------------
    @staticmethod
    def process_webhook_event(session: Session, event: Dict[str, Any]) -> bool:
        """
        Apply a verified Stripe event. Returns False when the event id was
        already processed.
        """
        event_id = event.get("id")
        event_type = event.get("type", "")
        existing = session.exec(
            select(WebhookEvent).where(WebhookEvent.stripe_event_id == event_id)
        ).first()
        if existing and existing.processed:
            logger.info(f"ℹ️ Webhook event {event_id} already processed")
            return False

        record = existing or WebhookEvent(
            stripe_event_id=event_id,
            event_type=event_type,
            payload=json.dumps(event),
        )
        session.add(record)
        session.commit()

        data_object = (event.get("data") or {}).get("object") or {}
        try:
            if event_type == "checkout.session.completed":
                SubscriptionService._handle_checkout_completed(session, data_object)
            elif event_type == "customer.subscription.updated":
                SubscriptionService.sync_subscription(session, data_object)
            elif event_type == "customer.subscription.deleted":
                subscription = SubscriptionService.get_by_stripe_id(session, data_object.get("id"))
                if subscription:
                    SubscriptionService.revert_to_free(session, subscription)
            elif event_type == "invoice.payment_failed":
                if data_object.get("subscription"):
                    SubscriptionService.mark_past_due(session, data_object["subscription"])
            else:
                logger.info(f"ℹ️ Unhandled event type: {event_type}")
        except Exception as e:
            session.rollback()
            record = session.get(WebhookEvent, record.id)
            record.processing_error = str(e)
            session.add(record)
            session.commit()
            raise

        record.processed = True
        session.add(record)
        session.commit()
        return True

    @staticmethod
    def _handle_checkout_completed(session: Session, checkout: Dict[str, Any]) -> None:
        metadata = checkout.get("metadata") or {}
        user_id = metadata.get("userId")
        plan_type = metadata.get("planType")
        if not (user_id and plan_type):
            logger.warning("⚠️ Checkout session without userId/planType metadata")
            return

        user = session.get(User, int(user_id))
        plan = SubscriptionService.get_plan_by_type(session, plan_type)
        if not user or not plan:
            raise SubscriptionError(f"Unknown user {user_id} or plan {plan_type}")

        is_yearly = str(metadata.get("isYearly", "false")).lower() == "true"
        period_start = period_end = None
        stripe_subscription_id = checkout.get("subscription")
        if stripe_subscription_id and settings.STRIPE_ENABLED:
            try:
                remote = stripe.Subscription.retrieve(stripe_subscription_id)
                period_start = _from_timestamp(remote["current_period_start"])
                period_end = _from_timestamp(remote["current_period_end"])
            except stripe.StripeError as e:
                logger.warning(f"⚠️ Could not get subscription dates, using default: {e}")

        SubscriptionService.activate_subscription(
            session,
            user,
            plan,
            stripe_subscription_id=stripe_subscription_id,
            stripe_customer_id=checkout.get("customer"),
            stripe_price_id=plan.stripe_price_id_yearly if is_yearly else plan.stripe_price_id_monthly,
            period_start=period_start,
            period_end=period_end,
            is_yearly=is_yearly,
            amount_paid=checkout.get("amount_total"),
        )

