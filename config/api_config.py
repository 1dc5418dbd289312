"""
API configuration - resolves the base URL for REST calls.

One locator for every environment: development sends root-relative paths to
the proxy target, other environments build absolute URLs from API_BASE_URL
(or the configured fallback when it is unset).
"""

import threading
from typing import Any, Dict, Optional

from config.app_config import APIConfig, get_config
from utils.logging_config import get_logger

logger = get_logger(__name__)


def normalize_endpoint(endpoint: str) -> str:
    """Ensure endpoint starts with /"""
    return endpoint if endpoint.startswith("/") else f"/{endpoint}"


def build_api_url(endpoint: str, base_url: str) -> str:
    """
    Build the URL for an endpoint against a base URL

    Args:
        endpoint: Endpoint path, leading slash optional
        base_url: Base URL; empty means same-origin (proxied) requests

    Returns:
        Root-relative path when base_url is empty, absolute URL otherwise
    """
    normalized = normalize_endpoint(endpoint)

    if not base_url:
        return normalized

    return f"{base_url.rstrip('/')}{normalized}"


def resolve_base_url(api: APIConfig) -> str:
    """
    Resolve the base URL used to build API URLs

    Returns:
        "" when requests go through the dev proxy, otherwise the configured
        base URL or the fallback
    """
    if api.use_dev_proxy:
        return ""

    if not api.configured_base_url:
        logger.warning(f"API_BASE_URL not set, falling back to {api.fallback_base_url}")
        return api.fallback_base_url

    return api.configured_base_url


def resolve_transport_origin(api: APIConfig) -> str:
    """Origin that root-relative requests are actually sent to (the proxy target)"""
    return api.configured_base_url or api.fallback_base_url


def get_api_base_url() -> str:
    """Base URL for the global configuration"""
    return resolve_base_url(get_config().api)


def api_url(endpoint: str) -> str:
    """Get full API URL for a given endpoint using the global configuration"""
    return build_api_url(endpoint, get_api_base_url())


def get_environment_info() -> Dict[str, Any]:
    """Environment information for diagnostics"""
    config = get_config()
    return {
        "is_development": config.is_development,
        "is_production": config.is_production,
        "mode": config.environment,
        "api_base_url": resolve_base_url(config.api),
        "app_name": config.ui.app_name,
        "app_version": config.ui.app_version,
    }


def probe_api_connectivity(client, endpoint: Optional[str] = None) -> threading.Thread:
    """
    Fire-and-forget connectivity check, logged only

    Args:
        client: ApiClient used for the probe
        endpoint: Endpoint to hit (defaults to the configured probe endpoint)

    Returns:
        The daemon thread running the probe
    """
    endpoint = endpoint or get_config().api.probe_endpoint

    def _probe():
        try:
            status = client.probe(endpoint)
            logger.info(f"API is reachable: {status}")
        except Exception as e:
            logger.error(f"API connection failed: {e}")
            logger.info("This might be a CORS/proxy issue or the backend is not running")

    logger.info("Testing API connectivity...")
    thread = threading.Thread(target=_probe, name="api-connectivity-probe", daemon=True)
    thread.start()
    return thread
