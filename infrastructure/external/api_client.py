"""
REST client adapter for the NewWork backend.
Handles URL resolution, bearer authentication and the {data: ...} envelope.
"""

from typing import Any, Callable, Iterable, Optional

import httpx

from config.api_config import build_api_url, resolve_base_url, resolve_transport_origin
from config.app_config import AppConfig, get_config
from utils.logging_config import get_logger


class ApiError(Exception):
    """Base error for every failed API interaction"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NetworkError(ApiError):
    """Transport failure, no response received"""


class ApiResponseError(ApiError):
    """Server answered with a non-2xx status"""


class UnauthorizedError(ApiResponseError):
    """401 on an authenticated call"""


class PreconditionError(ApiError):
    """Operation refused locally before any request was sent"""


def unwrap(body: Any, keys: Iterable[str] = ("data",)) -> Any:
    """
    Extract the payload from a response envelope

    Args:
        body: Decoded JSON body
        keys: Envelope keys to try in order

    Returns:
        The first present envelope value, or None
    """
    if not isinstance(body, dict):
        return None
    for key in keys:
        if key in body:
            return body[key]
    return None


class ApiClient:
    """
    Thin wrapper around httpx.Client for the NewWork REST API.
    Never retries; every failure is raised as an ApiError subclass.
    """

    def __init__(
        self,
        base_url: str = "",
        transport_origin: str = "",
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        timeout: float = 10.0,
        on_unauthorized: Optional[Callable[[], None]] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.logger = get_logger(__name__)
        self.base_url = base_url
        self.token_provider = token_provider
        self.on_unauthorized = on_unauthorized
        self._http = httpx.Client(
            base_url=transport_origin,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_config(cls, config: Optional[AppConfig] = None, **kwargs) -> 'ApiClient':
        """Create a client for the configured backend"""
        config = config or get_config()
        return cls(
            base_url=resolve_base_url(config.api),
            transport_origin=resolve_transport_origin(config.api),
            timeout=config.api.timeout,
            **kwargs
        )

    def url_for(self, endpoint: str) -> str:
        return build_api_url(endpoint, self.base_url)

    def request(
        self,
        method: str,
        endpoint: str,
        json: Any = None,
        authenticated: bool = True,
        token: Optional[str] = None,
    ) -> Any:
        """
        Send a request and return the decoded JSON body

        Args:
            method: HTTP method
            endpoint: Endpoint path
            json: JSON payload for write methods
            authenticated: Attach the bearer token
            token: Explicit token, overrides the token provider

        Returns:
            Decoded JSON body, or None for empty bodies

        Raises:
            NetworkError, UnauthorizedError, ApiResponseError
        """
        url = self.url_for(endpoint)
        headers = {}

        if authenticated:
            bearer = token if token is not None else (self.token_provider() if self.token_provider else None)
            if bearer:
                headers["Authorization"] = f"Bearer {bearer}"

        try:
            response = self._http.request(method, url, json=json, headers=headers)
        except httpx.RequestError as e:
            self.logger.warning(f"{method} {url} failed: {e.__class__.__name__}: {e}")
            raise NetworkError(f"Unable to reach the server ({e.__class__.__name__})") from e

        if response.status_code == 401 and authenticated:
            self.logger.warning(f"{method} {url} rejected with 401")
            # Explicit-token calls validate a token the session does not own yet
            if self.on_unauthorized is not None and token is None:
                self.on_unauthorized()
            raise UnauthorizedError("Authentication required", status_code=401)

        if not response.is_success:
            self.logger.warning(f"{method} {url} returned {response.status_code}")
            raise ApiResponseError(
                f"Request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        self.logger.debug(f"{method} {url} -> {response.status_code}")

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            self.logger.warning(f"{method} {url} returned a non-JSON body")
            return None

    def get(self, endpoint: str, **kwargs) -> Any:
        return self.request("GET", endpoint, **kwargs)

    def post(self, endpoint: str, json: Any = None, **kwargs) -> Any:
        return self.request("POST", endpoint, json=json, **kwargs)

    def put(self, endpoint: str, json: Any = None, **kwargs) -> Any:
        return self.request("PUT", endpoint, json=json, **kwargs)

    def delete(self, endpoint: str, **kwargs) -> Any:
        return self.request("DELETE", endpoint, **kwargs)

    def probe(self, endpoint: str) -> int:
        """Unauthenticated GET returning the status code, for diagnostics only"""
        response = self._http.get(self.url_for(endpoint))
        return response.status_code

    def close(self):
        self._http.close()

    def __enter__(self) -> 'ApiClient':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
