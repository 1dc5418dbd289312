"""
Test environment-specific configurations
"""

import os
import pytest
from config.environments import get_environment_config
from config.environments.development import get_development_config
from config.environments.production import get_production_config


class TestEnvironmentConfigs:
    """Test environment-specific configuration loading"""

    def test_development_config(self):
        """Test development configuration"""
        config = get_development_config()

        assert config.environment == "development"
        assert config.debug == True
        assert config.logging.level == "DEBUG"
        assert "DEV" not in config.ui.app_name
        assert "DEV" in config.ui.page_title
        assert config.api.use_dev_proxy == True
        assert config.auth.token_storage == "cookie"
        assert config.auth.token_cookie_secure == False
        assert config.auth.demo_login_enabled == True

    def test_production_config(self):
        """Test production configuration"""
        config = get_production_config()

        assert config.environment == "production"
        assert config.debug == False
        assert config.logging.level == "INFO"
        assert "DEV" not in config.ui.page_title
        assert config.api.use_dev_proxy == False
        assert config.api.probe_connectivity == True
        assert config.auth.token_storage == "cookie"
        assert config.auth.token_cookie_secure == True
        assert config.auth.demo_login_enabled == False

    def test_production_reads_base_url(self, monkeypatch):
        """Test production picks up API_BASE_URL"""
        monkeypatch.setenv("API_BASE_URL", "https://api.newwork.example")
        config = get_production_config()

        assert config.api.configured_base_url == "https://api.newwork.example"

    def test_environment_selection_development(self):
        """Test environment selection for development"""
        original_env = os.environ.get("APP_ENV")
        try:
            os.environ["APP_ENV"] = "development"
            config = get_environment_config()
            assert config.environment == "development"
            assert config.debug == True
        finally:
            if original_env is not None:
                os.environ["APP_ENV"] = original_env
            else:
                os.environ.pop("APP_ENV", None)

    def test_environment_selection_production(self):
        """Test environment selection for production"""
        original_env = os.environ.get("APP_ENV")
        try:
            os.environ["APP_ENV"] = "production"
            config = get_environment_config()
            assert config.environment == "production"
            assert config.debug == False
        finally:
            if original_env is not None:
                os.environ["APP_ENV"] = original_env
            else:
                os.environ.pop("APP_ENV", None)

    def test_environment_selection_other(self, monkeypatch):
        """Test other environments use the base configuration"""
        monkeypatch.setenv("APP_ENV", "staging")
        config = get_environment_config()

        assert config.environment == "staging"
        assert config.api.use_dev_proxy == False

    def test_default_environment(self):
        """Test default environment when APP_ENV is not set"""
        original_env = os.environ.get("APP_ENV")
        try:
            os.environ.pop("APP_ENV", None)
            config = get_environment_config()
            # Should default to development
            assert config.environment == "development"
        finally:
            if original_env is not None:
                os.environ["APP_ENV"] = original_env

    def test_config_validation(self, tmp_path, monkeypatch):
        """Test that all environment configs pass validation"""
        monkeypatch.chdir(tmp_path)
        configs = [
            get_development_config(),
            get_production_config()
        ]

        for config in configs:
            assert config.validate() == []
