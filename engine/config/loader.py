"""
Config Loader

Loads engine settings and pipeline definitions from YAML files.
Settings may be overridden through environment variables.
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ValidationError
import logging

logger = logging.getLogger(__name__)


class EngineSettings(BaseModel):
    """Runtime settings for the engine CLI, validator client and service"""
    validator_url: str = "http://127.0.0.1:8000"
    validator_timeout: float = 10.0
    service_host: str = "0.0.0.0"
    service_port: int = 8000
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


class NodeConfig(BaseModel):
    """Node entry of a pipeline definition"""
    type: str
    id: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    position: Optional[Dict[str, float]] = None


class EdgeConfig(BaseModel):
    """Plain connection between two nodes"""
    source: str
    target: str
    sourceHandle: Optional[str] = None
    targetHandle: Optional[str] = None


class VariableConfig(BaseModel):
    """Variable connection, as created by selecting a variable token"""
    source: str
    target: str
    name: str


class PipelineConfig(BaseModel):
    """Complete pipeline definition"""
    name: str = "pipeline"
    nodes: List[NodeConfig] = Field(default_factory=list)
    edges: List[EdgeConfig] = Field(default_factory=list)
    variables: List[VariableConfig] = Field(default_factory=list)


# Environment variable -> EngineSettings field
ENV_OVERRIDES = {
    "PIPELINE_VALIDATOR_URL": "validator_url",
    "PIPELINE_VALIDATOR_TIMEOUT": "validator_timeout",
    "HOST": "service_host",
    "PORT": "service_port",
    "LOG_LEVEL": "log_level",
}


class ConfigLoader:
    """
    Loads settings and pipeline definitions from a config directory.

    Layout:
        config/
            settings.yaml          # optional EngineSettings
            pipelines/<name>.yaml  # PipelineConfig files

    Example usage:
        loader = ConfigLoader(Path("config"))
        settings = loader.load_settings()
        pipeline = loader.load_pipeline("summarize")
    """

    def __init__(self, config_dir: Path = Path("config")):
        """
        Initialize loader with config directory.

        Args:
            config_dir: Root config directory (contains pipelines/ subdirectory)
        """
        self.config_dir = Path(config_dir)
        logger.debug(f"Initialized ConfigLoader with config_dir: {config_dir}")

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        try:
            with open(path) as f:
                raw = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load {path}: {e}")
            raise ValueError(f"Failed to load {path}: {e}")

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ValueError(f"Failed to load {path}: expected a mapping at top level")
        return raw

    def load_settings(self, path: Optional[Path] = None) -> EngineSettings:
        """
        Load settings from YAML, then apply environment overrides.

        Args:
            path: Settings file (default: <config_dir>/settings.yaml);
                  a missing file means defaults

        Returns:
            Validated EngineSettings

        Raises:
            ValueError: If the file is malformed or holds invalid values
        """
        path = Path(path) if path else self.config_dir / "settings.yaml"

        raw: Dict[str, Any] = {}
        if path.exists():
            raw = self._read_yaml(path)
            logger.info(f"Loaded settings from {path}")
        else:
            logger.debug(f"No settings file at {path}, using defaults")

        for env_var, field_name in ENV_OVERRIDES.items():
            value = os.getenv(env_var)
            if value:
                raw[field_name] = value

        try:
            return EngineSettings(**raw)
        except ValidationError as e:
            raise ValueError(f"Invalid settings in {path}: {e}")

    def load_pipeline(self, name_or_path: str) -> PipelineConfig:
        """
        Load a pipeline definition.

        Args:
            name_or_path: Path to a YAML file, or the name of a file in
                          <config_dir>/pipelines/ (without extension)

        Returns:
            Validated PipelineConfig

        Raises:
            ValueError: If the file is missing, malformed, or invalid
        """
        path = Path(name_or_path)
        if not path.exists():
            path = self.config_dir / "pipelines" / f"{name_or_path}.yaml"

        if not path.exists():
            raise ValueError(
                f"No pipeline definition: {name_or_path}. "
                f"Expected: {path}"
            )

        raw = self._read_yaml(path)
        try:
            config = PipelineConfig(**raw)
        except ValidationError as e:
            raise ValueError(f"Invalid pipeline definition {path}: {e}")

        self._validate_references(config, path)

        logger.info(
            f"Loaded pipeline '{config.name}' from {path}: "
            f"{len(config.nodes)} nodes, {len(config.edges)} edges, "
            f"{len(config.variables)} variables"
        )
        return config

    def _validate_references(self, config: PipelineConfig, path: Path) -> None:
        """
        Check that explicit node ids are unique.

        Edges may still reference unknown ids; they are kept and ignored
        during evaluation like any dangling edge.
        """
        seen = set()
        for node in config.nodes:
            if node.id is None:
                continue
            if node.id in seen:
                raise ValueError(f"Duplicate node id in {path}: {node.id}")
            seen.add(node.id)
