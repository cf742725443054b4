#!/usr/bin/env python3
"""
Core Module for the Campaign Planner

Shared infrastructure for the planner microservice.

COMPONENTS:
    - config/: Dataclass configuration loaded from deployment/environments/*.env
        - planner_config.py: service settings, alert thresholds, channel groups
        - infra_config.py: PostgreSQL connection settings
        - logging_config.py: log level, format and handlers

USAGE:
    from core.config import get_settings, configure_logging

    settings = get_settings()
    configure_logging(settings.logging)
"""

__version__ = "1.0.0"
