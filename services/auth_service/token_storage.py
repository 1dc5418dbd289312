"""
Client-side storage for the bearer token.
A single key holds the token string; it is read when a browser session starts,
written on login and cleared on logout or when the token is rejected.

Storage always belongs to one client: the Streamlit server process is shared by
every visitor, so nothing here may keep a token where another session can read it.
"""

import threading
from typing import Callable, Mapping, Optional
from urllib.parse import unquote

from config.app_config import AuthConfig
from utils.logging_config import get_logger


class TokenStorage:
    """Interface for token storage backends"""

    def read(self) -> Optional[str]:
        raise NotImplementedError

    def write(self, token: str):
        raise NotImplementedError

    def clear(self):
        raise NotImplementedError


class MemoryTokenStorage(TokenStorage):
    """Token kept for the lifetime of one session store only"""

    def __init__(self, token: Optional[str] = None):
        self._token = token
        self._lock = threading.Lock()

    def read(self) -> Optional[str]:
        with self._lock:
            return self._token

    def write(self, token: str):
        with self._lock:
            self._token = token

    def clear(self):
        with self._lock:
            self._token = None


class CookieTokenStorage(TokenStorage):
    """
    Token kept in a cookie of the browser that owns the session.

    Args:
        cookies: Cookies the browser sent when its session started
        send: Delivers a cookie update to that browser; called with
            (name, token) to set it and (name, None) to expire it
        name: Cookie name
    """

    def __init__(self, cookies: Mapping[str, str], send: Callable[[str, Optional[str]], None],
                 name: str = "authToken"):
        self.name = name
        self._send = send
        self._lock = threading.Lock()
        self.logger = get_logger(__name__)

        raw = cookies.get(name) if cookies is not None else None
        self._token = unquote(raw) if isinstance(raw, str) and raw else None

    def read(self) -> Optional[str]:
        with self._lock:
            return self._token

    def write(self, token: str):
        with self._lock:
            self._token = token
            self._send(self.name, token)
        self.logger.debug(f"Token cookie '{self.name}' queued for the browser")

    def clear(self):
        with self._lock:
            self._token = None
            self._send(self.name, None)
        self.logger.debug(f"Token cookie '{self.name}' expiry queued for the browser")


def create_token_storage(auth: AuthConfig, cookies: Optional[Mapping[str, str]] = None,
                         send: Optional[Callable[[str, Optional[str]], None]] = None) -> TokenStorage:
    """
    Create the storage backend selected by configuration

    Args:
        auth: Authentication configuration
        cookies: The client's cookies (cookie storage only)
        send: Cookie update channel back to the client (cookie storage only)

    Raises:
        ValueError: for unknown backends or cookie storage without a client channel
    """
    if auth.token_storage == "cookie":
        if send is None:
            raise ValueError("Cookie token storage needs a channel to the browser")
        return CookieTokenStorage(cookies or {}, send, name=auth.token_storage_key)
    if auth.token_storage == "memory":
        return MemoryTokenStorage()
    raise ValueError(f"Unknown token storage: {auth.token_storage}")
