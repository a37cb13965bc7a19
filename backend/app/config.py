"""
Configuration management for the Notebook Validator.

Configuration priority (highest to lowest):
1. Environment variables (for container deployments)
2. config.json file (for local development)
3. Built-in defaults
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# Config file path at project root
CONFIG_FILE = Path(__file__).parent.parent.parent / "config.json"

# Rule files shipped with the package
DEFAULT_RULES_DIR = Path(__file__).parent / "data" / "rules"


class Config:
    """
    Project-level configuration manager.

    Priority: ENV > config.json > defaults

    Environment variables:
      - RULES_DIR: Directory holding the YAML rule files
      - VALIDATOR_MAX_WORKERS: Worker pool size for batch analysis
    """

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = Path(config_file) if config_file else CONFIG_FILE
        self.data = self.load()

    def load(self) -> Dict[str, Any]:
        """Load configuration from file."""
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except Exception as e:
                logger.error(f"Failed to load config: {e}")
                return self._default_config()
        else:
            return self._default_config()

    def save(self) -> None:
        """Save configuration to file."""
        try:
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(self.data, f, indent=2)
            logger.info(f"Configuration saved to {self.config_file}")
        except Exception as e:
            logger.error(f"Failed to save config: {e}")

    def _default_config(self) -> Dict[str, Any]:
        """Return default configuration."""
        return {
            "paths": {},
            "analysis": {}
        }

    def get_rules_dir(self) -> str:
        """Get rules directory path (ENV > config.json > default)."""
        # Environment variable takes precedence
        env_path = os.getenv('RULES_DIR')
        if env_path:
            return env_path

        # Config file second
        config_path = self.data.get('paths', {}).get('rules_dir')
        if config_path:
            return config_path

        # Default last
        return str(DEFAULT_RULES_DIR)

    def get_max_workers(self) -> Optional[int]:
        """
        Get the batch worker pool size (ENV > config.json > None).

        None lets the executor pick its own default. Invalid values are
        logged and ignored.
        """
        raw = os.getenv('VALIDATOR_MAX_WORKERS')
        if not raw:
            raw = self.data.get('analysis', {}).get('max_workers')
        if raw in (None, ""):
            return None

        try:
            value = int(raw)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid max_workers value: {raw!r}")
            return None

        if value < 1:
            logger.warning(f"Ignoring non-positive max_workers value: {value}")
            return None
        return value

    def set_rules_dir(self, rules_dir: str) -> None:
        """Set a custom rules directory in config.json."""
        if 'paths' not in self.data:
            self.data['paths'] = {}
        self.data['paths']['rules_dir'] = rules_dir
        self.save()


# Global config instance
config = Config()
