#!/usr/bin/env python3
"""
Layered genebuild configuration.

Values are resolved, later layers winning, from:

1. the built-in defaults (config/defaults.py)
2. the YAML (or JSON) file passed in
3. its site-local sibling, ``<name>.local<ext>``, typically holding passwords
4. ``GENEBUILD_`` environment variables, ``__`` separating section and key,
   e.g. ``GENEBUILD_PSEUDOGENE__MIN_COVERAGE=85``
"""
import os
import copy
import json
import logging
from typing import Dict, Any, Iterable, Optional

import yaml

from genebuild.exceptions import ConfigurationError
from .schema import ConfigSchema
from .defaults import DEFAULT_CONFIG, FLAT_OPTIONS

ENV_PREFIX = "GENEBUILD_"


def merge_into(target: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Merge overlay into target, descending into nested sections"""
    for key, value in overlay.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merge_into(current, value)
        else:
            target[key] = value
    return target


def parse_env_value(raw: str) -> Any:
    """Interpret an environment string as bool, int, float or str"""
    lowered = raw.lower()
    if lowered in ('true', 'yes'):
        return True
    if lowered in ('false', 'no'):
        return False
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            pass
    return raw


def local_path_for(config_path: str) -> str:
    stem, ext = os.path.splitext(config_path)
    return f"{stem}.local{ext}"


class ConfigManager:
    """Resolved configuration with dotted and flat-name lookups"""

    def __init__(self, config_path: Optional[str] = None):
        self.logger = logging.getLogger("genebuild.config")
        self.config_path = config_path
        self.config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)

        for path in self._files(config_path):
            merge_into(self.config, self._read(path))
            self.logger.info(f"Loaded configuration from {path}")

        self._apply_environment(os.environ.items())

        for problem in ConfigSchema.validate(self.config):
            self.logger.error(f"Configuration error: {problem}")

    def _files(self, config_path: Optional[str]) -> Iterable[str]:
        if not config_path:
            return []
        if not os.path.exists(config_path):
            self.logger.warning(f"Configuration file not found: {config_path}, using defaults")
            return []
        local = local_path_for(config_path)
        return [config_path, local] if os.path.exists(local) else [config_path]

    def _read(self, path: str) -> Dict[str, Any]:
        try:
            with open(path) as handle:
                data = json.load(handle) if path.endswith('.json') else yaml.safe_load(handle)
        except (OSError, ValueError, yaml.YAMLError) as e:
            self.logger.error(f"Cannot read configuration {path}: {e}")
            raise ConfigurationError(f"Cannot read configuration {path}: {e}", {"path": path}) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration {path} is not a mapping", {"path": path})
        return data

    def _apply_environment(self, environ) -> None:
        for name, raw in environ:
            if not name.startswith(ENV_PREFIX):
                continue
            *sections, key = name[len(ENV_PREFIX):].lower().split("__")
            node = self.config
            for section in sections:
                if not isinstance(node.get(section), dict):
                    node[section] = {}
                node = node[section]
            node[key] = parse_env_value(raw)
            self.logger.debug(f"Environment override {name}")

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a value by dotted key, e.g. 'pseudogene.min_coverage'"""
        node: Any = self.config
        for part in key.split('.'):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def get_option(self, name: str, default: Any = None) -> Any:
        """Look up a value by its flat option name, e.g. EST_COVERAGE_CUTOFF

        Raises:
            ConfigurationError: If the name is not a known option
        """
        dotted = FLAT_OPTIONS.get(name.upper())
        if dotted is None:
            raise ConfigurationError(f"Unknown configuration option: {name}")
        return self.get(dotted, default)

    def get_section(self, section: str) -> Dict[str, Any]:
        return dict(self.config.get(section) or {})

    def get_db_config(self, section: str = 'database') -> Dict[str, Any]:
        """Connection settings of 'database' (core) or 'est_database'"""
        return self.config.get(section, {})

    def get_path(self, path_name: str, default: str = "") -> str:
        return self.get(f"paths.{path_name}", default)

    def get_tool_path(self, tool_name: str, default: str = "") -> str:
        return self.get(f"tools.{tool_name}_path", default)
