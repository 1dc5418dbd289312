"""
Development environment configuration overrides
"""

from dataclasses import dataclass
from config.app_config import AppConfig


@dataclass
class DevelopmentConfig(AppConfig):
    """Development environment configuration"""
    
    def __post_init__(self):
        self.apply_external_settings()
        
        # Development-specific overrides
        self.environment = "development"
        self.debug = True
        
        # More verbose logging in development
        self.logging.level = "DEBUG"
        self.logging.enable_file_logging = True
        self.logging.log_file = "logs/dev-app.log"
        
        # Root-relative API paths, sent to the proxy target (API_BASE_URL or localhost:3001)
        self.api.use_dev_proxy = True
        self.api.probe_connectivity = False
        
        # Token lives in the browser, so a reload keeps the session
        self.auth.token_storage = "cookie"
        self.auth.token_cookie_secure = False
        self.auth.demo_login_enabled = True
        
        self.ui.title_suffix = " (DEV)"


def get_development_config() -> DevelopmentConfig:
    """Get development-specific configuration"""
    return DevelopmentConfig()
