"""
Validation configuration loader.

Loads validation config and named schemas from YAML files:

    config:
      bail: false
      locale: en
      responseType: grouped
    schemas:
      signup:
        email: required|string|email
        password: required|string|min:8|confirmed
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from modules.validation.core.config import ValidationConfig
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class ValidationConfigLoader:
    """
    Loads validation configuration from YAML files.

    Supports:
    - Engine options (`config:`), same keys as ValidationConfig
    - Named schemas (`schemas:`)
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """
        Initialize config loader.

        Args:
            config_path: Path to the YAML file
                        If None, uses default: config/validation/schemas.yaml
        """
        if config_path is None:
            base_dir = Path(__file__).parent.parent.parent.parent
            config_path = base_dir / "config" / "validation" / "schemas.yaml"

        self.config_path = Path(config_path)
        self._config: Optional[Dict[str, Any]] = None

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Returns:
            Configuration dictionary

        Raises:
            yaml.YAMLError: If YAML parsing fails
        """
        if not self.config_path.exists():
            logger.warning(
                f"Validation config file not found: {self.config_path}. "
                "Using empty configuration."
            )
            self._config = self._get_default_config()
            return self._config

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._config = yaml.safe_load(f) or {}

            logger.info(f"Loaded validation config from: {self.config_path}")
            return self._config

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse validation config: {e}")
            raise

    def _ensure_loaded(self) -> Dict[str, Any]:
        if self._config is None:
            self.load()
        return self._config

    def get_config(self, **overrides: Any) -> ValidationConfig:
        """
        Engine options from the `config:` section.

        Args:
            **overrides: Options taking precedence over the file
        """
        options = self._ensure_loaded().get('config') or {}
        return ValidationConfig.build(options, **overrides)

    def get_schemas(self) -> Dict[str, Dict[str, Any]]:
        return self._ensure_loaded().get('schemas') or {}

    def get_schema(self, name: str) -> Dict[str, Any]:
        """
        Get a named schema.

        Raises:
            KeyError: Schema not defined in the file
        """
        schemas = self.get_schemas()
        if name not in schemas:
            raise KeyError(f"Schema '{name}' not found in {self.config_path}")
        return schemas[name]

    def list_schemas(self) -> List[str]:
        return list(self.get_schemas().keys())

    def _get_default_config(self) -> Dict[str, Any]:
        return {'config': {}, 'schemas': {}}

    def reload(self) -> Dict[str, Any]:
        """Reload configuration from file"""
        self._config = None
        return self.load()
