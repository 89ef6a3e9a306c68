# scripts/seed.py

import os
import sys
import argparse
from datetime import datetime

from dotenv import load_dotenv
from sqlmodel import Session, select

# Ensure root path for relative imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.database import create_db_and_tables, session_scope
from core.security import hash_password
from models.models import (
    Enterprise, EnterpriseCategory, EnterpriseTeamMember, PlanType,
    SubscriptionPlan, TeamRole, User, UserRole,
)

# ✅ Load environment variables
load_dotenv()


PLANS = [
    {
        "plan_type": PlanType.FREE.value,
        "name": "Free",
        "description": "Perfect for exploring the Earth Care Network",
        "price_monthly": 0,
        "price_yearly": 0,
        "token_quota_limit": 10000,
        "display_order": 0,
        "features": [
            "Browse enterprise directory",
            "Access member benefits",
            "Basic search functionality",
            "Community access",
        ],
    },
    {
        "plan_type": PlanType.CRM_BASIC.value,
        "name": "CRM Basic",
        "description": "CRM essentials with AI Copilot",
        "price_monthly": 1900,
        "price_yearly": 19000,
        "token_quota_limit": 50000,
        "display_order": 1,
        "features": [
            "Everything in Free",
            "Contact and opportunity tracking",
            "AI Copilot",
        ],
    },
    {
        "plan_type": PlanType.CRM_PRO.value,
        "name": "CRM Pro",
        "description": "Self-hosted CRM + AI Sales Autopilot",
        "price_monthly": 4200,
        "price_yearly": 42000,
        "token_quota_limit": 200000,
        "display_order": 2,
        "features": [
            "Everything in CRM Basic",
            "Unlimited enterprise workspaces",
            "Lead scoring & AI insights",
            "Task management",
            "Priority support",
        ],
    },
    {
        "plan_type": PlanType.BUILD_PRO_BUNDLE.value,
        "name": "Build Pro Bundle",
        "description": "CRM + Spatial Network Build Pro",
        "price_monthly": 8811,
        "price_yearly": 88110,
        "token_quota_limit": 500000,
        "display_order": 3,
        "features": [
            "Everything in CRM Pro",
            "Team collaboration features",
            "Custom integrations",
            "Dedicated account manager",
        ],
    },
]

SAMPLE_ENTERPRISES = [
    ("Regenerative Farms Collective", EnterpriseCategory.LAND_PROJECTS, "Vermont, USA", True),
    ("Commons Capital Fund", EnterpriseCategory.CAPITAL_SOURCES, "Oakland, USA", True),
    ("Open Soil Toolkit", EnterpriseCategory.OPEN_SOURCE_TOOLS, None, False),
    ("Bioregional Weavers Network", EnterpriseCategory.NETWORK_ORGANIZERS, "Bristol, UK", True),
]


def _price_id(plan_type: str, interval: str):
    return os.getenv(f"STRIPE_{plan_type.upper()}_{interval}_PRICE_ID")


def seed_plans(session: Session) -> None:
    for data in PLANS:
        plan = session.exec(
            select(SubscriptionPlan).where(SubscriptionPlan.plan_type == data["plan_type"])
        ).first()
        if not plan:
            plan = SubscriptionPlan(plan_type=data["plan_type"])

        for key, value in data.items():
            setattr(plan, key, value)
        if data["price_monthly"] > 0:
            plan.stripe_price_id_monthly = _price_id(data["plan_type"], "MONTHLY")
            plan.stripe_price_id_yearly = _price_id(data["plan_type"], "YEARLY")
        plan.updated_at = datetime.utcnow()
        session.add(plan)
        print(f"✅ Seeded plan: {data['name']}")
    session.commit()


def _ensure_user(session: Session, email: str, password: str, role: UserRole, first_name: str, **billing) -> User:
    user = session.exec(select(User).where(User.email == email)).first()
    if user:
        return user

    user = User(
        email=email,
        first_name=first_name,
        password_hash=hash_password(password),
        role=role.value,
        **billing,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    print(f"✅ Added {role.value} user {email}")
    return user


def seed_dev_data():
    """Seed development database with plans, demo users and sample enterprises."""
    print("🌱 Seeding development data...")
    create_db_and_tables()

    with session_scope() as session:
        seed_plans(session)

        # -----------------------------
        # 👑 Admin + CRM Pro demo users
        # -----------------------------
        _ensure_user(session, "admin@earthcare.network", "admin12345", UserRole.ADMIN, "Admin")
        pro_user = _ensure_user(
            session, "pro@earthcare.network", "crmpro12345", UserRole.CRM_PRO, "Pro",
            current_plan_type=PlanType.CRM_PRO.value,
            subscription_status="active",
            token_quota_limit=200000,
        )
        _ensure_user(session, "member@earthcare.network", "member12345", UserRole.FREE, "Member")

        # -----------------------------
        # 🏢 Sample enterprises
        # -----------------------------
        for name, category, location, verified in SAMPLE_ENTERPRISES:
            existing = session.exec(select(Enterprise).where(Enterprise.name == name)).first()
            if existing:
                continue
            session.add(Enterprise(
                name=name,
                category=category.value,
                location=location,
                is_verified=verified,
            ))
        session.commit()
        print("✅ Added sample enterprises")

        # The CRM Pro demo user owns the first sample enterprise
        first = session.exec(select(Enterprise).where(Enterprise.name == SAMPLE_ENTERPRISES[0][0])).first()
        membership = session.exec(
            select(EnterpriseTeamMember).where(
                EnterpriseTeamMember.enterprise_id == first.id,
                EnterpriseTeamMember.user_id == pro_user.id,
            )
        ).first()
        if not membership:
            session.add(EnterpriseTeamMember(
                enterprise_id=first.id, user_id=pro_user.id, role=TeamRole.OWNER.value,
            ))
            session.commit()
            print(f"✅ {pro_user.email} is owner of {first.name}")

    print("🌱 Development data seeding complete.")


def seed_production_data():
    """Seed only the subscription plans."""
    print("🌱 Seeding subscription plans...")
    create_db_and_tables()
    with session_scope() as session:
        seed_plans(session)
    print("🌱 Plan seeding complete.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the Earth Care Network database.")
    parser.add_argument(
        "--env",
        choices=["dev", "production"],
        default="dev",
        help="dev seeds demo users and enterprises; production seeds plans only",
    )
    args = parser.parse_args()

    if args.env == "dev":
        seed_dev_data()
    elif args.env == "production":
        seed_production_data()
