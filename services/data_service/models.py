"""
Data models for feedback, absence statistics and employee profiles.
Wire format is camelCase; unknown server fields are kept in `extra`.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


def to_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


@dataclass
class Feedback:
    """Feedback left by one employee on another's profile"""
    id: str
    author_id: str = ""
    target_id: str = ""
    body: str = ""
    created_at: str = ""
    updated_at: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    KNOWN_FIELDS = ("id", "authorId", "targetId", "body", "createdAt", "updatedAt")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Feedback':
        return cls(
            id=str(data.get("id", "")),
            author_id=str(data.get("authorId", "")),
            target_id=str(data.get("targetId", "")),
            body=data.get("body", ""),
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", ""),
            extra={k: v for k, v in data.items() if k not in cls.KNOWN_FIELDS},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.extra,
            "id": self.id,
            "authorId": self.author_id,
            "targetId": self.target_id,
            "body": self.body,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @property
    def is_temporary(self) -> bool:
        return self.id.startswith("temp-")


@dataclass(frozen=True)
class AbsenceStats:
    total_days_requested: int = 0
    pending_requests: int = 0
    total_requests: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'AbsenceStats':
        data = data or {}
        return cls(
            total_days_requested=to_int(data.get("totalDaysRequested")),
            pending_requests=to_int(data.get("pendingRequests")),
            total_requests=to_int(data.get("totalRequests")),
        )


@dataclass(frozen=True)
class VacationDays:
    """Annual allowance combined with the employee's absence statistics"""
    total_days: int
    used_days: int
    remaining_days: int
    stats: Optional[AbsenceStats] = None

    @classmethod
    def compute(cls, annual_allowance: int, stats: Optional[AbsenceStats]) -> 'VacationDays':
        used = stats.total_days_requested if stats else 0
        return cls(
            total_days=annual_allowance,
            used_days=used,
            remaining_days=max(0, annual_allowance - used),
            stats=stats,
        )


@dataclass
class EmployeeProfile:
    id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    role: str = ""
    department: str = ""
    position: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    KNOWN_FIELDS = ("id", "firstName", "lastName", "email", "role", "department", "position")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EmployeeProfile':
        return cls(
            id=str(data.get("id", "")),
            first_name=data.get("firstName", "") or "",
            last_name=data.get("lastName", "") or "",
            email=data.get("email", "") or "",
            role=data.get("role", "") or "",
            department=data.get("department", "") or "",
            position=data.get("position", "") or "",
            extra={k: v for k, v in data.items() if k not in cls.KNOWN_FIELDS},
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email or self.id
