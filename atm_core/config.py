"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from decimal import Decimal
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class AtmConfig(BaseSettings):
    """ATM transaction core configuration"""

    model_config = SettingsConfigDict(
        env_prefix="ATM_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Machine configuration
    atm_id: str = "ATM-001"
    initial_cash_stock: str = "10000"  # Decimal as string, never float
    seed_demo_data: bool = True

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr

    # Feature flags
    enable_audit_logging: bool = True

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090

    @property
    def initial_cash(self) -> Decimal:
        return Decimal(self.initial_cash_stock)


# Global configuration instance
config = AtmConfig()


def get_config() -> AtmConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> AtmConfig:
    """Reload configuration from environment"""
    global config
    config = AtmConfig()
    return config
