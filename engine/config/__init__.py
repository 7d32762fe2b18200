"""
Config Module

YAML settings and pipeline definition loading.
"""

from .loader import (
    ConfigLoader,
    EngineSettings,
    PipelineConfig,
    NodeConfig,
    EdgeConfig,
    VariableConfig,
)

__all__ = [
    "ConfigLoader",
    "EngineSettings",
    "PipelineConfig",
    "NodeConfig",
    "EdgeConfig",
    "VariableConfig",
]
