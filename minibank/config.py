"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from datetime import date
from pydantic_settings import BaseSettings
from typing import Optional


class MinibankConfig(BaseSettings):
    """Minibank ledger configuration"""
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    
    # Currency configuration
    eur_to_ron_rate: str = "5"  # 1 EUR = 5 RON
    
    # Simulation configuration
    simulation_start_date: Optional[date] = None  # If None, starts today
    
    # Feature flags
    enable_audit_logging: bool = True
    
    class Config:
        env_prefix = "MINIBANK_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = MinibankConfig()


def get_config() -> MinibankConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> MinibankConfig:
    """Reload configuration from environment"""
    global config
    config = MinibankConfig()
    return config
