"""
Data service - client-side resource stores backed by the REST API.
"""

from dataclasses import dataclass

from .cancellation import CancellationToken, cancel_scope
from .feedback_store import FeedbackStore, ReceivedFeedbackStore
from .absence_store import VacationDaysStore, summarize
from .profile_store import ProfileStore, ProfileDirectoryStore


@dataclass
class DataServices:
    """The stores owned by one signed-in browser session"""
    feedback: FeedbackStore
    received_feedback: ReceivedFeedbackStore
    vacation_days: VacationDaysStore
    profile: ProfileStore
    directory: ProfileDirectoryStore

    @classmethod
    def create(cls, client) -> 'DataServices':
        return cls(
            feedback=FeedbackStore(client),
            received_feedback=ReceivedFeedbackStore(client),
            vacation_days=VacationDaysStore(client),
            profile=ProfileStore(client),
            directory=ProfileDirectoryStore(client),
        )


__all__ = [
    'CancellationToken',
    'cancel_scope',
    'DataServices',
    'FeedbackStore',
    'ReceivedFeedbackStore',
    'VacationDaysStore',
    'summarize',
    'ProfileStore',
    'ProfileDirectoryStore'
]
