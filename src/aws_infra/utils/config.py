#!/usr/bin/env python3
"""
utils/config.py

Simple configuration management utilities.
Provides centralized configuration loading.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from aws_infra.core.constants import (
    DEFAULT_AWS_REGION,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_TIMEOUT,
)
from aws_infra.utils.logger import setup_logger

logger = setup_logger(__name__, "config.log")

CONFIG_DIR_ENV = "AWS_INFRA_CONFIG_DIR"


class ConfigManager:
    """
    Simple configuration manager.

    Features:
    - YAML configuration loading
    - Environment variable override support
    """

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize ConfigManager.

        Args:
            config_dir: Custom config directory path (defaults to
                $AWS_INFRA_CONFIG_DIR, then PROJECT_ROOT/configs)
        """
        self.project_root = Path(__file__).parent.parent.parent.parent
        if config_dir is None and os.environ.get(CONFIG_DIR_ENV):
            config_dir = Path(os.environ[CONFIG_DIR_ENV])
        self.explicit_dir = config_dir is not None
        self.config_dir = Path(config_dir) if config_dir else self.project_root / "configs"

        # Try both .yml and .yaml extensions
        yml_file = self.config_dir / "settings.yml"
        yaml_file = self.config_dir / "settings.yaml"

        if yml_file.exists():
            self.settings_file = yml_file
        else:
            self.settings_file = yaml_file  # Default to .yaml for error messages

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """
        Load a YAML file safely.
        """
        if not file_path.exists():
            if self.explicit_dir:
                logger.warning(f"Config file not found: {file_path}")
            else:
                logger.debug(f"Config file not found: {file_path}, using defaults")
            return {}

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading {file_path}: {e}")
            return {}

        if content is None:
            return {}
        if not isinstance(content, dict):
            logger.error(f"Error loading {file_path}: top level must be a mapping")
            return {}
        return content

    def load_settings(self) -> Dict[str, Any]:
        """
        Load application settings.
        """
        return self._load_yaml_file(self.settings_file)

    def get_value(
        self, key_path: str, default: Any = None, env_var: Optional[str] = None
    ) -> Any:
        """
        Get configuration value with dot notation support and environment variable override.
        """
        # Check environment variable first
        if env_var and env_var in os.environ:
            return os.environ[env_var]

        # Navigate through nested dictionary
        keys = key_path.split(".")
        current = self.config

        try:
            for key in keys:
                current = current[key]
            return current
        except (KeyError, TypeError):
            return default

    def get_aws_region(self) -> str:
        """Get AWS region with environment variable override support."""
        for env_var in ("AWS_REGION", "AWS_DEFAULT_REGION"):
            if os.environ.get(env_var):
                return os.environ[env_var]
        return self.get_value("aws.region", DEFAULT_AWS_REGION)

    def get_aws_profile(self) -> Optional[str]:
        """Get the named credentials profile, if any."""
        return self.get_value("aws.profile", None, env_var="AWS_PROFILE")

    def get_role_arn(self) -> Optional[str]:
        """Get role ARN to assume before calling AWS."""
        return self.get_value("aws.role_arn", None, env_var="AWS_INFRA_ROLE_ARN")

    def get_logging_level(self) -> str:
        """Get logging level."""
        return self.get_value("logging.level", "INFO", env_var="LOG_LEVEL")

    def get_output_format(self) -> str:
        """Get default CLI output format (table, json or csv)."""
        return self.get_value("output.format", DEFAULT_OUTPUT_FORMAT)

    def get_polling_config(self, service: str) -> Dict[str, float]:
        """Get polling timeout and interval for a service (ssm, cloudformation, ec2)."""
        polling = {"timeout": DEFAULT_POLL_TIMEOUT, "interval": DEFAULT_POLL_INTERVAL}
        polling.update(self.get_value(f"polling.{service}", {}) or {})
        return {key: float(value) for key, value in polling.items()}

    @property
    def config(self) -> Dict[str, Any]:
        """Get the full configuration as a cached property."""
        if not hasattr(self, "_cached_config"):
            self._cached_config = self.load_settings()
        return self._cached_config

    def reload_config(self) -> None:
        """Force reload of configuration from file."""
        if hasattr(self, "_cached_config"):
            delattr(self, "_cached_config")
