"""Configuration models and config file discovery."""

from .config import (
    STRATEGY_ORDER,
    AnalyzerConfig,
    CacheConfig,
    Config,
    ConfidenceWeights,
    EmergencyConfig,
    ExtractionSettings,
    MonitoringConfig,
    ScoringWeights,
    SignificanceConfig,
    find_config_file,
)

__all__ = [
    "STRATEGY_ORDER",
    "AnalyzerConfig",
    "CacheConfig",
    "Config",
    "ConfidenceWeights",
    "EmergencyConfig",
    "ExtractionSettings",
    "MonitoringConfig",
    "ScoringWeights",
    "SignificanceConfig",
    "find_config_file",
]
