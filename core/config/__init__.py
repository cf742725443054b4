#!/usr/bin/env python3
"""Modular configuration system for the campaign planner

Configuration hierarchy:
- planner_config: service settings, thresholds, channel groups
- infra_config: PostgreSQL connection settings
- logging_config: Logging configuration
"""
import os
from dotenv import load_dotenv
from .logging_config import LoggingConfig, configure_logging
from .infra_config import InfraConfig
from .planner_config import PlannerConfig, ThresholdConfig

# Load environment file based on ENV
env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
env_files = {
    "development": "deployment/environments/dev.env",
    "dev": "deployment/environments/dev.env",
    "testing": "deployment/environments/test.env",
    "test": "deployment/environments/test.env",
    "staging": "deployment/environments/staging.env",
    "production": "deployment/environments/production.env",
}
env_file = env_files.get(env, "deployment/environments/dev.env")
load_dotenv(env_file, override=False)

# Create global settings instance
settings = PlannerConfig.from_env()

def get_settings() -> PlannerConfig:
    """Get global settings instance"""
    return settings

def reload_settings() -> PlannerConfig:
    """Reload settings from environment"""
    global settings
    settings = PlannerConfig.from_env()
    return settings

__all__ = [
    # Main config
    'PlannerConfig',
    'get_settings',
    'reload_settings',
    'settings',
    # Sub-configs
    'ThresholdConfig',
    'LoggingConfig',
    'InfraConfig',
    'configure_logging',
]
