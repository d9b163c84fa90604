"""
Configuration module for the LAN survey.
Provides YAML configuration loading and the segment list reader.
"""

from .config_loader import (
    ConfigLoader,
    SurveyConfig,
    LivenessConfig,
    NamingConfig,
    ProbeConfig,
    SNMPConfig,
    DiscoveryConfig,
    InventoryConfig,
    WatchConfig,
    OutputConfig,
)
from .segment_loader import load_segments, parse_segments

__all__ = [
    'ConfigLoader',
    'SurveyConfig',
    'LivenessConfig',
    'NamingConfig',
    'ProbeConfig',
    'SNMPConfig',
    'DiscoveryConfig',
    'InventoryConfig',
    'WatchConfig',
    'OutputConfig',
    'load_segments',
    'parse_segments',
]
