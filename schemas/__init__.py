from .user_schema import UserCreate, UserLogin, UserRead, TokenResponse, UserRoleUpdate, UserStatusUpdate
from .enterprise_schema import (
    EnterpriseCreate, EnterpriseRead, EnterpriseListResponse, CategoryCount,
    MembershipRead, TeamMemberCreate, TeamMemberUpdate, TeamMemberRead,
    ClaimStatus, ClaimResult,
)
from .crm_schema import (
    PersonCreate, PersonRead,
    OpportunityCreate, OpportunityRead,
    TaskCreate, TaskRead,
    DashboardRead,
)
from .subscription_schema import (
    PlanRead, SubscriptionRead, SubscriptionUserStatus, SubscriptionStatusResponse,
    CancelResponse, UsageCreate, UsageLogRead, UsageResponse,
)
from .onboarding_schema import OnboardingStepRead, OnboardingFlowRead, ProgressData, ProgressResponse
from .admin_schema import SeedJobCreate, SeedJobStarted, SeedJobRead, AdminStats
from .favorites_schema import FavoriteCreate, FavoriteRead, FavoriteStatus, FavoriteStats
from .search_schema import SearchResponse
from .copilot_schema import ConversationCreate, ConversationRead, ChatMessageCreate, ChatMessageRead
from .partner_schema import PartnerApplicationCreate, PartnerApplicationRead, PartnerApplicationReview

__all__ = [
    # User
    "UserCreate", "UserLogin", "UserRead", "TokenResponse", "UserRoleUpdate", "UserStatusUpdate",

    # Enterprise / workspace
    "EnterpriseCreate", "EnterpriseRead", "EnterpriseListResponse", "CategoryCount",
    "MembershipRead", "TeamMemberCreate", "TeamMemberUpdate", "TeamMemberRead",
    "ClaimStatus", "ClaimResult",

    # CRM
    "PersonCreate", "PersonRead",
    "OpportunityCreate", "OpportunityRead",
    "TaskCreate", "TaskRead",
    "DashboardRead",

    # Subscription
    "PlanRead", "SubscriptionRead", "SubscriptionUserStatus", "SubscriptionStatusResponse",
    "CancelResponse", "UsageCreate", "UsageLogRead", "UsageResponse",

    # Onboarding
    "OnboardingStepRead", "OnboardingFlowRead", "ProgressData", "ProgressResponse",

    # Admin
    "SeedJobCreate", "SeedJobStarted", "SeedJobRead", "AdminStats",

    # Favorites / search
    "FavoriteCreate", "FavoriteRead", "FavoriteStatus", "FavoriteStats", "SearchResponse",

    # Copilot
    "ConversationCreate", "ConversationRead", "ChatMessageCreate", "ChatMessageRead",

    # Partner applications
    "PartnerApplicationCreate", "PartnerApplicationRead", "PartnerApplicationReview",
]
