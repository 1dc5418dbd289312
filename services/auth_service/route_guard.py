"""
Role-based route authorization.

Unauthorized access is never explained: unauthenticated sessions go to the
login page, authenticated sessions with the wrong role go to the landing page.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Tuple

from services.auth_service.models import AuthState, Role, SessionSnapshot


LOGIN_PATH = "/login"
LANDING_PATH = "/dashboard"


class GuardAction(str, Enum):
    RENDER = "render"
    LOADING = "loading"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GuardDecision:
    action: GuardAction
    target: Optional[str] = None

    @classmethod
    def render(cls) -> 'GuardDecision':
        return cls(GuardAction.RENDER)

    @classmethod
    def loading(cls) -> 'GuardDecision':
        return cls(GuardAction.LOADING)

    @classmethod
    def redirect(cls, target: str) -> 'GuardDecision':
        return cls(GuardAction.REDIRECT, target)


@dataclass(frozen=True)
class Route:
    """A navigable path and the roles allowed to reach it (None = any authenticated role)"""
    path: str
    title: str
    allowed_roles: Optional[FrozenSet[Role]] = None
    icon: str = ""

    @property
    def url_path(self) -> str:
        """Single-segment path usable as a Streamlit page url_path"""
        return self.path.strip("/").replace("/", "_")

    def permits(self, role: Optional[Role]) -> bool:
        if role is None:
            return False
        return self.allowed_roles is None or role in self.allowed_roles


def evaluate(snapshot: SessionSnapshot, allowed_roles: Optional[Iterable[Role]] = None) -> GuardDecision:
    """
    Decide what a guarded route does for the given session

    Args:
        snapshot: Current session snapshot
        allowed_roles: Roles allowed on the route, None for any authenticated role

    Returns:
        LOADING while authenticating, REDIRECT to login when not authenticated,
        REDIRECT to the landing page when the role is not allowed, RENDER otherwise
    """
    if snapshot.state == AuthState.AUTHENTICATING:
        return GuardDecision.loading()

    if not snapshot.is_authenticated:
        return GuardDecision.redirect(LOGIN_PATH)

    if allowed_roles is not None and snapshot.role not in frozenset(allowed_roles):
        return GuardDecision.redirect(LANDING_PATH)

    return GuardDecision.render()


class RouteTable:
    """Protected routes plus the public login entry point"""

    def __init__(self, routes: Iterable[Route]):
        self.routes: List[Route] = list(routes)

    def resolve(self, path: str) -> Optional[Route]:
        normalized = "/" + path.strip("/")
        for route in self.routes:
            if route.path == normalized:
                return route
        return None

    def visible_for(self, role: Optional[Role]) -> List[Route]:
        """Routes to list in the navigation menu for a role"""
        return [route for route in self.routes if route.permits(role)]

    def navigate(self, path: str, snapshot: SessionSnapshot) -> Tuple[Optional[Route], GuardDecision]:
        """
        Resolve a path to a route and the guard decision for it

        Returns:
            (route or None, decision); unknown paths and "/" redirect to the
            landing page or the login page
        """
        if snapshot.state == AuthState.AUTHENTICATING:
            return self.resolve(path), GuardDecision.loading()

        normalized = "/" + path.strip("/")
        if normalized == LOGIN_PATH:
            if snapshot.is_authenticated:
                return None, GuardDecision.redirect(LANDING_PATH)
            return None, GuardDecision.render()

        route = self.resolve(normalized)
        if route is None:
            target = LANDING_PATH if snapshot.is_authenticated else LOGIN_PATH
            return None, GuardDecision.redirect(target)

        return route, evaluate(snapshot, route.allowed_roles)


MANAGER_ONLY = frozenset({Role.MANAGER})
STAFF_ONLY = frozenset({Role.EMPLOYEE, Role.COWORKER})

DEFAULT_ROUTES = [
    Route("/dashboard", "Dashboard", icon="🏠"),
    Route("/profile", "My Profile", icon="👤"),
    Route("/profiles", "All Profiles", MANAGER_ONLY, icon="🗂️"),
    Route("/profiles/browse", "Browse Colleagues", STAFF_ONLY, icon="🔎"),
    Route("/feedback", "Feedback", icon="💬"),
    Route("/absence", "My Absence", STAFF_ONLY, icon="🌴"),
    Route("/manager/absence", "Team Absence", MANAGER_ONLY, icon="📅"),
    Route("/manager/team", "Team Management", MANAGER_ONLY, icon="👥"),
]


def get_default_route_table() -> RouteTable:
    return RouteTable(DEFAULT_ROUTES)
