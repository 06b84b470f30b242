"""Configuration loading for cost-trend."""

from .settings import CostTrendConfig, get_config, load_profile_account_map, reload_config

__all__ = ["CostTrendConfig", "get_config", "reload_config", "load_profile_account_map"]
