"""
Employee profile stores.
"""

from typing import Any, Dict, List, Optional

from infrastructure.external.api_client import ApiError, ApiResponseError, PreconditionError, unwrap
from services.data_service.cancellation import CancellationToken
from services.data_service.models import EmployeeProfile
from services.data_service.resource_store import ResourceStore

PROFILE_KEYS = ("profile", "data")


class ProfileStore(ResourceStore[Optional[EmployeeProfile]]):
    """A single profile, editable by its owner or a manager"""

    refresh_error_message = "Failed to load profile"
    save_error_message = "Failed to update profile"

    def __init__(self, client):
        super().__init__(client, None)

    def _fetch(self, profile_id) -> EmployeeProfile:
        data = unwrap(self.client.get(f"/api/profiles/{profile_id}"), PROFILE_KEYS)
        if not isinstance(data, dict):
            raise ApiResponseError("Profile missing from response")
        return EmployeeProfile.from_dict(data)

    def save(self, updates: Dict[str, Any], cancel_token: Optional[CancellationToken] = None) -> bool:
        """
        Send updated fields for the loaded profile, then reload it

        Returns:
            True if the update was accepted
        """
        profile = self._value
        if profile is None:
            self._fail(PreconditionError("No profile loaded"), self.save_error_message, cancel_token)
            return False

        seq = self._begin()
        try:
            try:
                body = self.client.put(f"/api/profiles/{profile.id}", json=updates)
            except ApiError as e:
                self.logger.warning(f"{self.save_error_message}: {e}")
                self._commit(seq, cancel_token, error=self.save_error_message)
                return False

            data = unwrap(body, PROFILE_KEYS)
            if isinstance(data, dict):
                self._commit(seq, cancel_token, value=EmployeeProfile.from_dict(data))
                return True
        finally:
            self._finish()

        # Server acknowledged without a record; fetch the canonical one
        self.refresh(profile.id, cancel_token=cancel_token)
        return True


class ProfileDirectoryStore(ResourceStore[List[EmployeeProfile]]):
    """Profile listing; the server decides how much of each profile a role sees"""

    refresh_error_message = "Failed to fetch profiles"

    def __init__(self, client):
        super().__init__(client, [])

    @property
    def profiles(self) -> List[EmployeeProfile]:
        return list(self._value)

    def _fetch(self) -> List[EmployeeProfile]:
        data = unwrap(self.client.get("/api/profiles"), ("data", "profiles"))
        if data is None:
            return []
        if not isinstance(data, list):
            raise ApiResponseError("Unexpected response: profile list expected")
        return [EmployeeProfile.from_dict(item) for item in data if isinstance(item, dict)]
