"""
Session and role data models for the authentication service.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Role(str, Enum):
    """Roles gating which routes a session may reach"""
    MANAGER = "Manager"
    EMPLOYEE = "Employee"
    COWORKER = "Coworker"

    @classmethod
    def parse(cls, value: Any) -> 'Role':
        """Parse a role from a server payload ("manager", "Co-worker", ...)"""
        if isinstance(value, Role):
            return value
        normalized = str(value or "").strip().lower().replace("-", "").replace("_", "").replace(" ", "")
        for role in cls:
            if role.value.lower() == normalized:
                return role
        raise ValueError(f"Unknown role: {value!r}")


class AuthState(str, Enum):
    """Authentication state machine states"""
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    ERROR = "error"


@dataclass(frozen=True)
class Session:
    """Authenticated identity and credential"""
    user_id: str
    role: Role
    bearer_token: str
    display_name: str = ""
    email: str = ""

    @classmethod
    def from_user_payload(cls, user: Dict[str, Any], token: str) -> 'Session':
        """
        Build a session from the user object of a login/me response

        Raises:
            ValueError: if the user id or role is missing or invalid
        """
        user_id = user.get("id") or user.get("userId") or user.get("_id")
        if not user_id:
            raise ValueError("User payload has no id")

        first = user.get("firstName") or ""
        last = user.get("lastName") or ""
        display_name = user.get("name") or f"{first} {last}".strip() or user.get("email", "")

        return cls(
            user_id=str(user_id),
            role=Role.parse(user.get("role")),
            bearer_token=token,
            display_name=display_name,
            email=user.get("email", ""),
        )

    def __repr__(self) -> str:
        # Keep the token out of logs and tracebacks
        return (f"Session(user_id={self.user_id!r}, role={self.role.value!r}, "
                f"display_name={self.display_name!r})")


@dataclass(frozen=True)
class SessionSnapshot:
    """Consistent view of the session store at one point in time"""
    state: AuthState
    session: Optional[Session] = None
    error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state == AuthState.AUTHENTICATED and self.session is not None

    @property
    def role(self) -> Optional[Role]:
        return self.session.role if self.session else None
