"""
Configuration loader that combines YAML files with environment variables.
"""
import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar, Union
from functools import lru_cache
from pydantic import BaseModel, ValidationError

T = TypeVar('T', bound=BaseModel)

SCORING_CONFIG_FILE = 'rating_engine.yaml'
SCORING_ENV_PREFIX = 'RATING_ENGINE_'


class ConfigurationError(Exception):
    """Configuration loading or validation error."""
    pass


class ConfigLoader:
    """
    Load and validate configuration from YAML files and environment variables.

    Environment variables take precedence over YAML values.
    """

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        """
        Initialize configuration loader.

        Args:
            config_dir: Directory containing YAML config files.
                       Defaults to /config relative to project root.
        """
        if config_dir is None:
            project_root = Path(__file__).parent.parent.parent
            config_dir = project_root / "config"

        self.config_dir = Path(config_dir)
        if not self.config_dir.is_dir():
            raise ConfigurationError(f"Config directory not found: {self.config_dir}")

    def load_yaml(self, filename: str) -> Dict[str, Any]:
        """
        Load YAML configuration file.

        Args:
            filename: Name of YAML file (e.g., 'rating_engine.yaml')

        Returns:
            Dictionary with configuration values

        Raises:
            ConfigurationError: If file not found or invalid YAML
        """
        filepath = self.config_dir / filename

        if not filepath.exists():
            raise ConfigurationError(f"Config file not found: {filepath}")

        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {filepath}: {e}")
        except OSError as e:
            raise ConfigurationError(f"Error reading {filepath}: {e}")

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Top level of {filepath} must be a mapping")
        return config

    def merge_with_env(
        self,
        config: Dict[str, Any],
        env_prefix: str = "",
        current_path: str = ""
    ) -> Dict[str, Any]:
        """
        Merge configuration with environment variables.

        Environment variables override YAML values. Nested keys are joined
        with underscores, e.g. RATING_ENGINE_WEIGHTS_VALUATION overrides
        weights.valuation.

        Args:
            config: Configuration dictionary from YAML
            env_prefix: Prefix for environment variables
            current_path: Current path in nested config (internal use)

        Returns:
            Merged configuration dictionary
        """
        result = config.copy()

        for key, value in config.items():
            env_path = f"{current_path}_{key}".upper() if current_path else key.upper()
            full_env_name = f"{env_prefix}{env_path}".replace(".", "_")

            env_value = os.getenv(full_env_name)

            if env_value is not None:
                result[key] = self._parse_env_value(env_value)
            elif isinstance(value, dict):
                result[key] = self.merge_with_env(value, env_prefix, env_path)

        return result

    def _parse_env_value(self, value: str) -> Any:
        """
        Parse environment variable value to appropriate type.

        Args:
            value: String value from environment variable

        Returns:
            Parsed value (bool, int, float, or string)
        """
        if value.lower() in ('true', 'yes', 'on'):
            return True
        if value.lower() in ('false', 'no', 'off'):
            return False

        if value.isdigit() or (value.startswith('-') and value[1:].isdigit()):
            return int(value)

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def load_and_validate(
        self,
        filename: str,
        model_class: Type[T],
        env_prefix: str = ""
    ) -> T:
        """
        Load YAML config, merge with environment variables, and validate.

        Args:
            filename: YAML config filename
            model_class: Pydantic model class for validation
            env_prefix: Prefix for environment variables (e.g., "RATING_ENGINE_")

        Returns:
            Validated configuration model instance

        Raises:
            ConfigurationError: If loading or validation fails
        """
        yaml_config = self.load_yaml(filename)
        merged_config = self.merge_with_env(yaml_config, env_prefix)

        try:
            validated_config = model_class(**merged_config)

            # Cross-field checks that pydantic cannot express per field
            if hasattr(validated_config, 'validate_weights_sum'):
                validated_config.validate_weights_sum()

            return validated_config

        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation failed for {filename}:\n{e}"
            )
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid configuration in {filename}: {e}"
            )


@lru_cache()
def get_config_loader(config_dir: Optional[str] = None) -> ConfigLoader:
    """
    Get cached configuration loader instance.

    Args:
        config_dir: Optional custom config directory path

    Returns:
        ConfigLoader instance
    """
    path = Path(config_dir) if config_dir else None
    return ConfigLoader(config_dir=path)


def load_scoring_config(config_dir: Optional[Union[str, Path]] = None):
    """
    Load and validate the scoring configuration.

    Args:
        config_dir: Directory holding rating_engine.yaml (project config/ by default)

    Returns:
        Validated ScoringConfig
    """
    from .models import ScoringConfig

    loader = get_config_loader(str(config_dir) if config_dir else None)
    return loader.load_and_validate(
        SCORING_CONFIG_FILE,
        ScoringConfig,
        env_prefix=SCORING_ENV_PREFIX
    )
