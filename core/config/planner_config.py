#!/usr/bin/env python3
"""Campaign planner main configuration

Combines the infrastructure and logging sub-configs with the planner's
business thresholds.
"""
import os
from dataclasses import dataclass, field
from typing import List

from .infra_config import InfraConfig
from .logging_config import LoggingConfig


def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default

def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default

def _list(val: str, default: List[str]) -> List[str]:
    if not val:
        return list(default)
    return [item.strip() for item in val.split(",") if item.strip()]


DEFAULT_SOCIAL_CHANNELS = ["Meta", "TikTok", "Pinterest"]


@dataclass
class ThresholdConfig:
    """Alert and KPI thresholds"""
    grp_efficiency: float = 0.90
    high_cpl: float = 150.0
    social_budget_ratio: float = 0.30

    # Severity cut-offs
    grp_gap_high: float = 20.0
    grp_gap_medium: float = 10.0
    cpl_high: float = 300.0
    cpl_medium: float = 200.0
    social_budget_high: float = 0.50

    @classmethod
    def from_env(cls) -> 'ThresholdConfig':
        return cls(
            grp_efficiency=_float(os.getenv("GRP_EFFICIENCY_THRESHOLD", ""), 0.90),
            high_cpl=_float(os.getenv("HIGH_CPL_THRESHOLD", ""), 150.0),
            social_budget_ratio=_float(os.getenv("SOCIAL_BUDGET_THRESHOLD", ""), 0.30),
            grp_gap_high=_float(os.getenv("GRP_GAP_HIGH", ""), 20.0),
            grp_gap_medium=_float(os.getenv("GRP_GAP_MEDIUM", ""), 10.0),
            cpl_high=_float(os.getenv("CPL_HIGH", ""), 300.0),
            cpl_medium=_float(os.getenv("CPL_MEDIUM", ""), 200.0),
            social_budget_high=_float(os.getenv("SOCIAL_BUDGET_HIGH", ""), 0.50),
        )


@dataclass
class PlannerConfig:
    """Main campaign planner configuration with all sub-configs"""

    # Environment
    environment: str = "development"
    debug: bool = False

    # Service settings
    service_name: str = "campaign_planner_service"
    host: str = "0.0.0.0"
    port: int = 8260

    # Reference data (channels, managers)
    reference_data_url: str = "http://localhost:8261"
    reference_data_timeout: float = 10.0

    # Duplication
    copy_suffix: str = "(Copy)"

    # Channel groups
    social_channels: List[str] = field(default_factory=lambda: list(DEFAULT_SOCIAL_CHANNELS))
    tv_channel: str = "TV"

    # Sub-configurations
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    infrastructure: InfraConfig = field(default_factory=InfraConfig)

    @classmethod
    def from_env(cls) -> 'PlannerConfig':
        """Load complete configuration from environment"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            environment=env,
            debug=_bool(os.getenv("DEBUG", "true" if env == "development" else "false")),
            service_name=os.getenv("SERVICE_NAME", "campaign_planner_service"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_int(os.getenv("SERVICE_PORT", "8260"), 8260),
            reference_data_url=os.getenv("REFERENCE_DATA_URL", "http://localhost:8261"),
            reference_data_timeout=_float(os.getenv("REFERENCE_DATA_TIMEOUT", ""), 10.0),
            copy_suffix=os.getenv("COPY_SUFFIX", "(Copy)"),
            social_channels=_list(os.getenv("SOCIAL_CHANNELS", ""), DEFAULT_SOCIAL_CHANNELS),
            tv_channel=os.getenv("TV_CHANNEL", "TV"),
            thresholds=ThresholdConfig.from_env(),
            logging=LoggingConfig.from_env(),
            infrastructure=InfraConfig.from_env(),
        )
