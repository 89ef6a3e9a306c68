# core/security.py
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Dict, Any

from fastapi import Depends, HTTPException, Path, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlmodel import Session, select

from core.config import settings
from core.database import get_session
from core.enterprise_roles import effective_team_role, has_team_role_or_higher
from core.plans import can_access
from core.roles import has_role, has_role_or_higher
from models.models import (
    Enterprise, EnterpriseTeamMember, PlanType, TeamRole, User, UserRole,
)



# ========================================
# 🔑 JWT / APP CONFIG
# ========================================
SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM or "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# ========================================
# 🔐 Password Hashing (Argon2)
# ========================================
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash password using Argon2."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# ========================================
# 🔑 Token Helpers
# ========================================
def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def create_token_for_user(user: User) -> str:
    return create_access_token({"sub": user.email, "user_id": user.id, "role": user.role})


def decode_token(token: str) -> dict:
    """Decode JWT and return payload."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token.",
            headers={"WWW-Authenticate": "Bearer"},
        )


# ========================================
# 👤 Authentication
# ========================================
def _load_user(token: str, session: Session) -> User:
    payload = decode_token(token)
    user_id = payload.get("user_id")
    email = payload.get("sub")

    if not (user_id or email):
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = None
    if user_id:
        user = session.get(User, user_id)
    if not user and email:
        user = session.exec(select(User).where(User.email == email)).first()

    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is inactive")
    return user


def get_current_user(token: str = Depends(oauth2_scheme), session: Session = Depends(get_session)) -> User:
    """Extract user from token and load full record from DB."""
    return _load_user(token, session)


def get_optional_user(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    session: Session = Depends(get_session),
) -> Optional[User]:
    """Same as get_current_user, but visitors (and bad tokens) resolve to None."""
    if not token:
        return None
    try:
        return _load_user(token, session)
    except HTTPException:
        return None


# ========================================
# 🛡️ Global Role Checks
# ========================================
def require_roles(*roles: UserRole):
    """Dependency factory: the caller's role must be one of ``roles``."""
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not has_role(current_user, roles):
            raise HTTPException(status_code=403, detail="Insufficient role for this action")
        return current_user
    return dependency


def require_min_role(minimum: UserRole):
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not has_role_or_higher(current_user, minimum):
            raise HTTPException(status_code=403, detail=f"Requires {minimum.value} role or higher")
        return current_user
    return dependency


def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    """Require a global admin."""
    if not has_role(current_user, [UserRole.ADMIN]):
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user


# ========================================
# 💳 Plan Gate
# ========================================
def require_plan(plan: PlanType):
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not can_access(current_user, plan):
            raise HTTPException(
                status_code=403,
                detail=f"Upgrade required: this feature needs the {plan.value} plan",
            )
        return current_user
    return dependency


# ========================================
# 🏢 Enterprise-Scoped Team Roles
# ========================================
@dataclass
class EnterpriseAccess:
    enterprise: Enterprise
    role: TeamRole
    membership: Optional[EnterpriseTeamMember]
    user: User


def require_enterprise_role(minimum: TeamRole):
    """
    Dependency factory for routes with an ``{enterprise_id}`` path parameter.

    Non-members get a 404 so the existence of an enterprise stays hidden.
    """
    def dependency(
        enterprise_id: int = Path(...),
        current_user: User = Depends(get_current_user),
        session: Session = Depends(get_session),
    ) -> EnterpriseAccess:
        enterprise = session.get(Enterprise, enterprise_id)
        if not enterprise:
            raise HTTPException(status_code=404, detail="Enterprise not found")

        membership = session.exec(
            select(EnterpriseTeamMember).where(
                EnterpriseTeamMember.enterprise_id == enterprise_id,
                EnterpriseTeamMember.user_id == current_user.id,
            )
        ).first()

        role = effective_team_role(current_user, membership)
        if role is None:
            raise HTTPException(status_code=404, detail="Enterprise not found")
        if not has_team_role_or_higher(role, minimum):
            raise HTTPException(
                status_code=403,
                detail=f"Requires {minimum.value} role or higher in this enterprise",
            )
        return EnterpriseAccess(enterprise=enterprise, role=role, membership=membership, user=current_user)
    return dependency
