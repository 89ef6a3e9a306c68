import os

# Settings are read at import time; configure before importing the app
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from core.database import engine
from core.security import create_token_for_user, hash_password
from main import app
from models.models import (
    Enterprise, EnterpriseCategory, EnterpriseTeamMember, PlanType,
    SubscriptionPlan, TeamRole, User, UserRole,
)

DEFAULT_PASSWORD = "password123"


def pytest_configure(config):
    config.addinivalue_line("markers", "client: tests for the earthcare_client package")
    config.addinivalue_line("markers", "payment: mark test as payment-related")


# ----------------------------------------------------------------------
# Database
# ----------------------------------------------------------------------
@pytest.fixture(autouse=True)
def reset_database():
    """Fresh schema for every test."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def session():
    with Session(engine) as session:
        yield session


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


# ----------------------------------------------------------------------
# Factories
# ----------------------------------------------------------------------
@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make(email=None, role=UserRole.FREE, password=DEFAULT_PASSWORD, **fields):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.org",
            password_hash=hash_password(password),
            role=role.value if isinstance(role, UserRole) else role,
            **fields,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_enterprise(session):
    def _make(name="Green Acres", category=EnterpriseCategory.LAND_PROJECTS, members=(), **fields):
        enterprise = Enterprise(name=name, category=category.value, **fields)
        session.add(enterprise)
        session.commit()
        session.refresh(enterprise)
        for user, role in members:
            session.add(EnterpriseTeamMember(
                enterprise_id=enterprise.id,
                user_id=user.id,
                role=role.value if isinstance(role, TeamRole) else role,
            ))
        session.commit()
        return enterprise

    return _make


@pytest.fixture
def plans(session):
    rows = {}
    for order, (plan_type, price, quota) in enumerate([
        (PlanType.FREE, 0, 10000),
        (PlanType.CRM_BASIC, 1900, 50000),
        (PlanType.CRM_PRO, 4200, 200000),
        (PlanType.BUILD_PRO_BUNDLE, 8811, 500000),
    ]):
        plan = SubscriptionPlan(
            plan_type=plan_type.value,
            name=plan_type.value.replace("_", " ").title(),
            price_monthly=price,
            token_quota_limit=quota,
            display_order=order,
            stripe_price_id_monthly=f"price_{plan_type.value}_m" if price else None,
        )
        session.add(plan)
        rows[plan_type] = plan
    session.commit()
    for plan in rows.values():
        session.refresh(plan)
    return rows


# ----------------------------------------------------------------------
# Auth helpers
# ----------------------------------------------------------------------
def auth_headers(user):
    return {"Authorization": f"Bearer {create_token_for_user(user)}"}


@pytest.fixture
def headers():
    return auth_headers


@pytest.fixture
def admin_user(make_user):
    return make_user(email="admin@example.org", role=UserRole.ADMIN)


@pytest.fixture
def member(make_user):
    return make_user(email="member@example.org", role=UserRole.FREE)
