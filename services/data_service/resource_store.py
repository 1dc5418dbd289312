"""
Base class for client-side resource stores.

A store owns one resource scope (a list or a record), refreshes it from the
API and exposes `value`, `loading` and a single human-readable `error`.
Failures never escape a store method: they are logged and reduced to `error`.
Responses are tagged with a per-store sequence number; anything older than
the last applied response is discarded, as is anything whose cancellation
token was cancelled before it arrived.
"""

import threading
from typing import Generic, Optional, TypeVar

from infrastructure.external.api_client import ApiClient, ApiError, PreconditionError
from services.data_service.cancellation import CancellationToken
from utils.logging_config import get_logger, log_execution_time

T = TypeVar("T")

_UNSET = object()


class ResourceStore(Generic[T]):
    """Fetch-and-hold pattern shared by every resource scope"""

    refresh_error_message = "Failed to load data"

    def __init__(self, client: ApiClient, initial: T):
        self.client = client
        self.logger = get_logger(type(self).__module__)
        self._lock = threading.RLock()
        self._value: T = initial
        self._error: Optional[str] = None
        self._in_flight = 0
        self._next_seq = 0
        self._applied_seq = 0
        self._scope: Optional[tuple] = None

    @property
    def value(self) -> T:
        return self._value

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    def clear_error(self):
        with self._lock:
            self._error = None

    # -- request bookkeeping -------------------------------------------------

    def _begin(self) -> int:
        with self._lock:
            self._next_seq += 1
            self._in_flight += 1
            self._error = None
            return self._next_seq

    def _finish(self):
        with self._lock:
            self._in_flight -= 1

    def _commit(self, seq: int, cancel_token: Optional[CancellationToken], value=_UNSET,
                error: Optional[str] = None) -> bool:
        """Apply a response unless it is stale or its view was torn down"""
        with self._lock:
            if cancel_token is not None and cancel_token.cancelled:
                self.logger.debug(f"Discarding response #{seq}: cancelled")
                return False
            if seq < self._applied_seq:
                self.logger.debug(f"Discarding response #{seq}: #{self._applied_seq} already applied")
                return False
            self._applied_seq = seq
            if value is not _UNSET:
                self._value = value
            self._error = error
            return error is None

    def _fail(self, error: ApiError, default_message: str, cancel_token: Optional[CancellationToken]):
        """Record a mutation failure (mutations are not sequenced)"""
        message = error.message if isinstance(error, PreconditionError) else default_message
        self.logger.warning(f"{default_message}: {error}")
        with self._lock:
            if cancel_token is not None and cancel_token.cancelled:
                return
            self._error = message

    # -- reads ---------------------------------------------------------------

    def _fetch(self, *scope) -> T:
        raise NotImplementedError

    def refresh(self, *scope, cancel_token: Optional[CancellationToken] = None) -> bool:
        """
        Replace the held value with the server's

        Args:
            *scope: Resource scope (e.g. profile id)
            cancel_token: Token checked before the result is applied

        Returns:
            True if a fresh value was applied
        """
        seq = self._begin()
        self._scope = scope
        try:
            try:
                with log_execution_time(self.logger, f"{type(self).__name__} refresh"):
                    value = self._fetch(*scope)
            except ApiError as e:
                self.logger.warning(f"{self.refresh_error_message}: {e}")
                self._commit(seq, cancel_token, error=self.refresh_error_message)
                return False
            return self._commit(seq, cancel_token, value=value)
        finally:
            self._finish()

    def ensure(self, *scope, cancel_token: Optional[CancellationToken] = None) -> bool:
        """
        Refresh only when the scope changed since the last refresh

        Streamlit reruns the page on every interaction; this keeps reruns from
        refetching data that is already held.

        Returns:
            True if the store holds data for this scope without error
        """
        if self._scope != scope:
            return self.refresh(*scope, cancel_token=cancel_token)
        return self._error is None
