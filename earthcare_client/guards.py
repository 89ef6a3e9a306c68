"""Route guard bound to a live session."""
from typing import Optional

from core.guards import GuardDecision, PageRule, evaluate_guard, rule_for_path

from .session import AuthSession
from .subscription import SubscriptionGate


class RouteGuard:
    def __init__(self, auth: AuthSession, subscription: Optional[SubscriptionGate] = None):
        self.auth = auth
        self.subscription = subscription

    def check_rule(self, rule: PageRule) -> GuardDecision:
        user = self.auth.current_user()
        snapshot = None
        if rule.required_plan is not None and user is not None and self.subscription is not None:
            snapshot = self.subscription.snapshot()
        return evaluate_guard(rule, user, subscription=snapshot)

    def check(self, path: str) -> GuardDecision:
        """Decision for the page at ``path``; unauthorized decisions carry a redirect."""
        return self.check_rule(rule_for_path(path))

    def resolve(self, path: str) -> str:
        """The path to actually render: ``path`` itself or the redirect target."""
        decision = self.check(path)
        return path if decision.is_authorized else decision.redirect_to
