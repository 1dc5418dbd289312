"""
Vacation days: absence statistics combined with the configured annual allowance.
Read-only; recomputed on every refresh.
"""

from typing import List, Optional

from infrastructure.external.api_client import unwrap
from services.data_service.models import AbsenceStats, VacationDays, to_int
from services.data_service.resource_store import ResourceStore


class VacationDaysStore(ResourceStore[Optional[VacationDays]]):
    """Vacation days for one employee"""

    refresh_error_message = "Failed to load vacation days data"

    def __init__(self, client):
        super().__init__(client, None)

    def _fetch(self, employee_id) -> VacationDays:
        stats_body = self.client.get(f"/api/absence/employee/{employee_id}/statistics")
        config_body = self.client.get("/api/config")

        stats_data = unwrap(stats_body)
        stats = AbsenceStats.from_dict(stats_data) if isinstance(stats_data, dict) else None

        app_config = unwrap(config_body)
        annual = to_int(app_config.get("annualVacationDays")) if isinstance(app_config, dict) else 0

        return VacationDays.compute(annual, stats)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def summarize(vacation_days: Optional[VacationDays]) -> List[str]:
    """
    Absence summary lines for the employee

    Returns:
        Empty list when no statistics are available
    """
    if vacation_days is None or vacation_days.stats is None:
        return []

    stats = vacation_days.stats
    used = vacation_days.used_days
    total = vacation_days.total_days
    lines = []

    if stats.pending_requests > 0:
        lines.append(f"You have {_plural(stats.pending_requests, 'request')} pending approval")
    if used > 0:
        lines.append(f"You've taken {_plural(used, 'day')} off this year")
    if used < total:
        lines.append(f"You have {_plural(vacation_days.remaining_days, 'day')} remaining for this year")
    else:
        lines.append("You've used all your annual leave days for this year")
    if stats.total_requests == 0:
        lines.append("You haven't submitted any absence requests yet")

    return lines
