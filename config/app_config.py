"""
Unified Configuration System for the NewWork portal

This module provides a centralized configuration system that consolidates all application settings,
supports environment-based overrides, and provides type-safe configuration access.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List
import streamlit as st
import os
from pathlib import Path


DEFAULT_FALLBACK_BASE_URL = "http://localhost:3001"


def _read_setting(name: str, default: str = "") -> str:
    """Read a setting from Streamlit secrets, falling back to the environment"""
    # In test environment, prefer environment variables
    if os.getenv("PYTEST_CURRENT_TEST") is not None:
        return os.getenv(name, default)

    try:
        value = st.secrets.get(name)
    except Exception:
        # No secrets.toml available
        value = None

    if value is None:
        return os.getenv(name, default)
    return str(value)


@dataclass
class APIConfig:
    """REST backend configuration"""
    configured_base_url: str = ""
    fallback_base_url: str = DEFAULT_FALLBACK_BASE_URL
    use_dev_proxy: bool = False
    timeout: float = 10.0
    probe_connectivity: bool = False
    probe_endpoint: str = "/api/config"

    @classmethod
    def from_secrets(cls) -> 'APIConfig':
        """Load API config from Streamlit secrets or environment"""
        return cls(
            configured_base_url=_read_setting("API_BASE_URL", ""),
            fallback_base_url=_read_setting("API_FALLBACK_BASE_URL", DEFAULT_FALLBACK_BASE_URL),
        )


@dataclass
class DemoAccount:
    """Quick-login account shown on the login page"""
    label: str
    email: str
    password: str


def _default_demo_accounts() -> List[DemoAccount]:
    return [
        DemoAccount(
            label="Manager (Full Access)",
            email=os.getenv("DEMO_MANAGER_EMAIL", "manager@newwork.com"),
            password=os.getenv("DEMO_MANAGER_PASSWORD", "password123"),
        ),
        DemoAccount(
            label="Employee (Own Profile)",
            email=os.getenv("DEMO_EMPLOYEE_EMAIL", "employee@newwork.com"),
            password=os.getenv("DEMO_EMPLOYEE_PASSWORD", "password123"),
        ),
        DemoAccount(
            label="Co-worker (Public Data)",
            email=os.getenv("DEMO_COWORKER_EMAIL", "coworker@newwork.com"),
            password=os.getenv("DEMO_COWORKER_PASSWORD", "password123"),
        ),
    ]


@dataclass
class AuthConfig:
    """Authentication and session configuration"""
    login_endpoint: str = "/api/auth/login"
    session_endpoint: str = "/api/auth/me"
    token_storage: str = "cookie"  # "cookie" or "memory"
    token_storage_key: str = "authToken"
    token_cookie_max_age: int = 7 * 24 * 3600
    token_cookie_secure: bool = False
    logout_on_unauthorized: bool = True
    demo_login_enabled: bool = True
    demo_accounts: List[DemoAccount] = field(default_factory=_default_demo_accounts)


@dataclass
class UIConfig:
    """User interface configuration"""
    app_name: str = "NewWork Frontend"
    app_version: str = "1.0.0"
    login_title: str = "Employee Profile System"
    page_icon: str = "🏢"
    title_suffix: str = ""

    @property
    def page_title(self) -> str:
        """Browser tab title; app_name itself stays as configured"""
        return f"{self.app_name}{self.title_suffix}"


@dataclass
class LoggingConfig:
    """Logging and monitoring configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    enable_file_logging: bool = False
    log_file: str = "logs/app.log"


@dataclass
class AppConfig:
    """Main application configuration"""
    api: APIConfig = field(default_factory=APIConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Environment settings
    environment: str = field(default_factory=lambda: os.getenv("APP_ENV", "development"))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def apply_external_settings(self):
        """Pull deployment settings (base URL, app metadata) from secrets/env"""
        self.api = APIConfig.from_secrets()
        self.ui.app_name = _read_setting("APP_NAME", self.ui.app_name) or self.ui.app_name
        self.ui.app_version = _read_setting("APP_VERSION", self.ui.app_version) or self.ui.app_version

    @classmethod
    def load(cls) -> 'AppConfig':
        """Load configuration with environment overrides"""
        config = cls()

        # Load API configuration from secrets/environment
        config.apply_external_settings()

        # Apply environment-specific overrides
        if config.environment == "production":
            config.debug = False
            config.logging.level = "WARNING"
            config.api.probe_connectivity = True
        elif config.environment == "development":
            config.debug = True
            config.logging.level = "DEBUG"
            config.api.use_dev_proxy = True

        return config

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []

        if self.auth.token_storage not in ("cookie", "memory"):
            errors.append(f"Unknown token storage '{self.auth.token_storage}' (expected 'cookie' or 'memory')")

        if not self.auth.token_storage_key:
            errors.append("Token storage key must not be empty")

        if self.auth.token_cookie_max_age <= 0:
            errors.append("Token cookie max age must be positive")

        if self.api.timeout <= 0:
            errors.append("API timeout must be positive")

        if not self.api.use_dev_proxy and not self.api.configured_base_url and not self.api.fallback_base_url:
            errors.append("No API base URL configured and no fallback available")

        if self.logging.enable_file_logging:
            log_dir = Path(self.logging.log_file).parent
            if not log_dir.exists():
                log_dir.mkdir(parents=True, exist_ok=True)

        for account in self.auth.demo_accounts:
            if not account.email:
                errors.append(f"Demo account '{account.label}' missing email")

        return errors

    def get_environment_summary(self) -> Dict[str, Any]:
        """Settings safe to print in logs (no credentials)"""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "use_dev_proxy": self.api.use_dev_proxy,
            "token_storage": self.auth.token_storage,
            "app_name": self.ui.app_name,
            "app_version": self.ui.app_version,
        }


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        from config.environments import get_environment_config
        _config = get_environment_config()

        # Validate configuration
        errors = _config.validate()
        if errors:
            import warnings
            for error in errors:
                warnings.warn(f"Configuration error: {error}")

    return _config


def reload_config() -> AppConfig:
    """Reload configuration (useful for testing)"""
    global _config
    _config = None
    return get_config()
