"""
Authentication session store.

State machine:
    authenticating  -> authenticated | unauthenticated | error   (initialize / login)
    unauthenticated -> authenticating                             (login)
    error           -> authenticating                             (login)
    authenticated   -> unauthenticated                            (logout / 401)

Every transition into AUTHENTICATED writes the token to storage, every
transition out of it removes the token.
"""

import threading
from typing import Any, Dict, Optional, Tuple

from config.app_config import AuthConfig
from infrastructure.external.api_client import (
    ApiClient,
    ApiError,
    ApiResponseError,
    NetworkError,
    unwrap,
)
from services.auth_service.models import AuthState, Role, Session, SessionSnapshot
from services.auth_service.token_storage import TokenStorage
from utils.logging_config import get_logger, log_auth_event


INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
SESSION_EXPIRED_MESSAGE = "Your session has expired. Please sign in again."
SERVER_UNAVAILABLE_MESSAGE = "Unable to reach the server. Please try again."
UNEXPECTED_RESPONSE_MESSAGE = "Unexpected response from the server"

# Statuses meaning "these credentials/this token are not valid"
REJECTED_STATUSES = {400, 401, 403, 404}


class SessionStore:
    """
    Owns the current session and its persisted token.
    Readers get immutable snapshots, so they never observe a half-applied transition.
    """

    def __init__(self, client: ApiClient, storage: TokenStorage, auth_config: Optional[AuthConfig] = None):
        self.client = client
        self.storage = storage
        self.auth_config = auth_config or AuthConfig()
        self.logger = get_logger(__name__)
        self._lock = threading.RLock()
        self._snapshot = SessionSnapshot(state=AuthState.AUTHENTICATING)

    # -- reads ---------------------------------------------------------------

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def state(self) -> AuthState:
        return self._snapshot.state

    @property
    def session(self) -> Optional[Session]:
        return self._snapshot.session

    @property
    def error(self) -> Optional[str]:
        return self._snapshot.error

    @property
    def is_authenticated(self) -> bool:
        return self._snapshot.is_authenticated

    @property
    def role(self) -> Optional[Role]:
        return self._snapshot.role

    def get_token(self) -> Optional[str]:
        """Bearer token for authenticated calls (None outside AUTHENTICATED)"""
        session = self._snapshot.session
        return session.bearer_token if session else None

    # -- transitions ---------------------------------------------------------

    def _set(self, state: AuthState, session: Optional[Session] = None, error: Optional[str] = None):
        with self._lock:
            previous = self._snapshot.state
            if state == AuthState.AUTHENTICATED and session is not None:
                self.storage.write(session.bearer_token)
            elif previous == AuthState.AUTHENTICATED:
                self.storage.clear()
            self._snapshot = SessionSnapshot(state=state, session=session, error=error)
        self.logger.debug(f"Auth state {previous.value} -> {state.value}")

    def initialize(self) -> SessionSnapshot:
        """
        Validate a persisted token, if any

        Returns:
            Snapshot after validation
        """
        with self._lock:
            if self._snapshot.state != AuthState.AUTHENTICATING:
                return self._snapshot

            token = self.storage.read()
            if not token:
                self._set(AuthState.UNAUTHENTICATED)
                return self._snapshot

            try:
                body = self.client.get(self.auth_config.session_endpoint, token=token)
                session = self._session_from_body(body, token)
            except ApiResponseError as e:
                if e.status_code in REJECTED_STATUSES:
                    self.storage.clear()
                    self._set(AuthState.UNAUTHENTICATED, error=SESSION_EXPIRED_MESSAGE)
                    log_auth_event(self.logger, "stored_token_rejected", status_code=e.status_code)
                else:
                    self._set(AuthState.ERROR, error=SERVER_UNAVAILABLE_MESSAGE)
                    log_auth_event(self.logger, "session_restore_failed", status_code=e.status_code)
                return self._snapshot
            except NetworkError:
                # Token not proven invalid, keep it for the next attempt
                self._set(AuthState.ERROR, error=SERVER_UNAVAILABLE_MESSAGE)
                log_auth_event(self.logger, "session_restore_failed", reason="network")
                return self._snapshot
            except ValueError as e:
                self.storage.clear()
                self._set(AuthState.UNAUTHENTICATED, error=UNEXPECTED_RESPONSE_MESSAGE)
                self.logger.warning(f"Discarding stored token, invalid session payload: {e}")
                return self._snapshot

            self._set(AuthState.AUTHENTICATED, session=session)
            log_auth_event(self.logger, "session_restored", user_id=session.user_id, role=session.role.value)
            return self._snapshot

    def login(self, email: str, password: str) -> bool:
        """
        Exchange credentials for a session

        Args:
            email: User email
            password: Password

        Returns:
            True if the session is now authenticated
        """
        with self._lock:
            if self._snapshot.state not in (AuthState.UNAUTHENTICATED, AuthState.ERROR):
                self.logger.warning(f"Login ignored in state {self._snapshot.state.value}")
                return self._snapshot.is_authenticated

            self._set(AuthState.AUTHENTICATING)

            try:
                body = self.client.post(
                    self.auth_config.login_endpoint,
                    json={"email": email, "password": password},
                    authenticated=False,
                )
                token, user = self._parse_login_body(body)
                session = Session.from_user_payload(user, token)
            except ApiResponseError as e:
                if e.status_code in REJECTED_STATUSES:
                    self.storage.clear()
                    self._set(AuthState.UNAUTHENTICATED, error=INVALID_CREDENTIALS_MESSAGE)
                    log_auth_event(self.logger, "login_rejected", status_code=e.status_code)
                else:
                    self._set(AuthState.ERROR, error=SERVER_UNAVAILABLE_MESSAGE)
                    log_auth_event(self.logger, "login_failed", status_code=e.status_code)
                return False
            except ApiError as e:
                self._set(AuthState.ERROR, error=SERVER_UNAVAILABLE_MESSAGE)
                log_auth_event(self.logger, "login_failed", reason=type(e).__name__)
                return False
            except ValueError as e:
                self._set(AuthState.ERROR, error=UNEXPECTED_RESPONSE_MESSAGE)
                self.logger.error(f"Malformed login response: {e}")
                return False

            self._set(AuthState.AUTHENTICATED, session=session)
            log_auth_event(self.logger, "login", user_id=session.user_id, role=session.role.value)
            return True

    def logout(self, error: Optional[str] = None):
        """Drop the session and its persisted token"""
        with self._lock:
            user_id = self._snapshot.session.user_id if self._snapshot.session else None
            self.storage.clear()
            self._set(AuthState.UNAUTHENTICATED, error=error)
        log_auth_event(self.logger, "logout", user_id=user_id, forced=error is not None)

    def handle_unauthorized(self):
        """Backend answered 401 for an authenticated call"""
        if not self.auth_config.logout_on_unauthorized:
            self.logger.warning("Received 401 for an authenticated call, session kept")
            return
        with self._lock:
            if self._snapshot.state != AuthState.AUTHENTICATED:
                return
            self.logout(error=SESSION_EXPIRED_MESSAGE)

    # -- payload parsing -----------------------------------------------------

    @staticmethod
    def _parse_login_body(body: Any) -> Tuple[str, Dict[str, Any]]:
        payload = unwrap(body) if isinstance(body, dict) and "data" in body else body
        if not isinstance(payload, dict):
            raise ValueError("Login response is not an object")

        token = payload.get("token") or payload.get("accessToken")
        user = payload.get("user")
        if not token or not isinstance(user, dict):
            raise ValueError("Login response missing token or user")
        return token, user

    @staticmethod
    def _session_from_body(body: Any, token: str) -> Session:
        payload = unwrap(body) if isinstance(body, dict) and "data" in body else body
        if not isinstance(payload, dict):
            raise ValueError("Session response is not an object")
        user = payload.get("user", payload)
        if not isinstance(user, dict):
            raise ValueError("Session response has no user")
        return Session.from_user_payload(user, token)
