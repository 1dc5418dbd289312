"""
Production environment configuration overrides
"""

from dataclasses import dataclass
from config.app_config import AppConfig


@dataclass
class ProductionConfig(AppConfig):
    """Production environment configuration"""
    
    def __post_init__(self):
        self.apply_external_settings()
        
        # Production-specific overrides
        self.environment = "production"
        self.debug = False
        
        # Production logging - less verbose, focus on errors
        self.logging.level = "INFO"
        self.logging.enable_file_logging = True
        self.logging.log_file = "logs/prod-app.log"
        
        # Absolute API URLs, one diagnostic probe at startup
        self.api.use_dev_proxy = False
        self.api.probe_connectivity = True
        
        # Served over HTTPS; the cookie is never sent in clear text
        self.auth.token_storage = "cookie"
        self.auth.token_cookie_secure = True
        self.auth.demo_login_enabled = False


def get_production_config() -> ProductionConfig:
    """Get production-specific configuration"""
    return ProductionConfig()
