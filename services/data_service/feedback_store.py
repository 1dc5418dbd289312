"""
Feedback stores with optimistic create and delete.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from infrastructure.external.api_client import ApiError, ApiResponseError, PreconditionError, unwrap
from services.data_service.cancellation import CancellationToken
from services.data_service.models import Feedback
from services.data_service.resource_store import ResourceStore


def _parse_feedback_list(body: Any) -> List[Feedback]:
    data = unwrap(body)
    if data is None:
        return []
    if not isinstance(data, list):
        raise ApiResponseError("Unexpected response: feedback list expected")
    return [Feedback.from_dict(item) for item in data if isinstance(item, dict)]


class FeedbackStore(ResourceStore[List[Feedback]]):
    """
    Feedback on one profile.

    The held list is always replaced, never mutated in place, so a caller
    holding `value` keeps a consistent list.
    """

    refresh_error_message = "Failed to fetch feedback"
    create_error_message = "Failed to create feedback"
    delete_error_message = "Failed to delete feedback"

    def __init__(self, client):
        super().__init__(client, [])

    @property
    def feedback(self) -> List[Feedback]:
        return list(self._value)

    def _fetch(self, profile_id) -> List[Feedback]:
        body = self.client.get(f"/api/feedback/profiles/{profile_id}")
        return _parse_feedback_list(body)

    def _remove(self, feedback_id: str):
        with self._lock:
            self._value = [f for f in self._value if f.id != feedback_id]

    def _replace(self, feedback_id: str, replacement: Feedback) -> bool:
        with self._lock:
            for index, item in enumerate(self._value):
                if item.id == feedback_id:
                    updated = list(self._value)
                    updated[index] = replacement
                    self._value = updated
                    return True
            return False

    def create(self, profile_id, payload: Dict[str, Any],
               cancel_token: Optional[CancellationToken] = None) -> Optional[Feedback]:
        """
        Insert a temporary record immediately, then persist it

        Args:
            profile_id: Profile receiving the feedback
            payload: Feedback fields without id and timestamps (e.g. {"body": ...})
            cancel_token: Token checked before the server record is applied

        Returns:
            The canonical record, the temporary one when the server sent no
            record back, or None on failure
        """
        now = datetime.now(timezone.utc).isoformat()
        temp = Feedback.from_dict({
            "targetId": str(profile_id),
            **payload,
            "id": f"temp-{uuid.uuid4().hex}",
            "createdAt": now,
            "updatedAt": now,
        })

        with self._lock:
            self._error = None
            self._value = [temp] + self._value

        try:
            body = self.client.post(f"/api/feedback/profiles/{profile_id}", json=payload)
        except ApiError as e:
            self._remove(temp.id)
            self._fail(e, self.create_error_message, cancel_token)
            return None

        if cancel_token is not None and cancel_token.cancelled:
            # View is gone; drop the placeholder, the next refresh brings the record
            self._remove(temp.id)
            return None

        data = unwrap(body)
        if not isinstance(data, dict):
            self.logger.warning("Feedback created but no record returned, keeping optimistic entry")
            return temp

        canonical = Feedback.from_dict(data)
        if not self._replace(temp.id, canonical):
            self.logger.debug(f"Optimistic entry {temp.id} already replaced by a refresh")
        return canonical

    def delete(self, feedback_id: str, cancel_token: Optional[CancellationToken] = None) -> bool:
        """
        Remove a record immediately, then delete it on the server.
        The record is not restored if the server call fails.
        """
        if feedback_id.startswith("temp-"):
            self._fail(PreconditionError("Feedback is still being saved"), self.delete_error_message, cancel_token)
            return False

        with self._lock:
            self._error = None
        self._remove(feedback_id)

        try:
            self.client.delete(f"/api/feedback/{feedback_id}")
        except ApiError as e:
            self._fail(e, self.delete_error_message, cancel_token)
            return False
        return True


class ReceivedFeedbackStore(ResourceStore[List[Feedback]]):
    """Feedback the signed-in user has received"""

    refresh_error_message = "Failed to fetch feedback"

    def __init__(self, client):
        super().__init__(client, [])

    @property
    def feedback(self) -> List[Feedback]:
        return list(self._value)

    def _fetch(self) -> List[Feedback]:
        return _parse_feedback_list(self.client.get("/api/feedback/received"))
