# reelsync/infrastructure/config/loaders/yaml_loader.py
import os
import json
import logging
from typing import Dict, Any, List, Optional

import yaml


class ConfigError(Exception):
    """Raised for any configuration that can not be loaded or is invalid."""


class FileNotFoundConfigError(ConfigError):
    def __init__(self, path: str, kind: str = "Configuration"):
        self.path = path
        super().__init__(f"{kind} file not found: {path}")


class YamlParseError(ConfigError):
    def __init__(self, file_path: str, yaml_error: yaml.YAMLError):
        self.file_path = file_path
        self.yaml_error = yaml_error
        super().__init__(f"Error parsing YAML file {file_path}: {yaml_error}")


class SchemaValidationError(ConfigError):
    """Carries every schema violation, one message per entry in ``errors``."""
    def __init__(self, file_path: str, errors: List[str]):
        self.file_path = file_path
        self.errors = errors
        details = "".join(f"\n  - {error}" for error in errors)
        super().__init__(f"Configuration validation failed for {file_path}:{details}")


class YamlConfigLoader:
    """Reads engine YAML files and the JSON schemas that describe them."""

    def __init__(self, schema_validator=None):
        self.logger = logging.getLogger("infrastructure.config.loader")
        self.schema_validator = schema_validator

    def load_file(self, file_path: str, schema_path: Optional[str] = None,
                  default_config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Args:
            file_path: YAML file to read
            schema_path: Validate the file against this schema when a validator is set
            default_config: Used when the file is empty

        Raises:
            FileNotFoundConfigError: If the file does not exist
            YamlParseError: If the YAML can not be parsed
            SchemaValidationError: If the file does not match ``schema_path``
            ConfigError: If the top level is not a mapping
        """
        if not os.path.isfile(file_path):
            raise FileNotFoundConfigError(file_path)

        try:
            with open(file_path, 'r', encoding='utf-8') as file:
                config = yaml.safe_load(file)
        except yaml.YAMLError as e:
            raise YamlParseError(file_path, e) from e

        if config is None:
            self.logger.warning(f"Empty configuration file: {file_path}")
            config = dict(default_config) if default_config is not None else {}
        if not isinstance(config, dict):
            raise ConfigError(f"Top level of {file_path} must be a mapping, got {type(config).__name__}")

        if schema_path and self.schema_validator:
            is_valid, errors = self.schema_validator.validate(config, self.load_schema(schema_path))
            if not is_valid:
                raise SchemaValidationError(file_path, errors)

        self.logger.debug(f"Loaded configuration from {file_path}")
        return config

    def load_schema(self, schema_path: str) -> Dict[str, Any]:
        if not os.path.isfile(schema_path):
            raise FileNotFoundConfigError(schema_path, kind="Schema")
        try:
            with open(schema_path, 'r', encoding='utf-8') as file:
                return json.load(file)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Error parsing schema file {schema_path}: {e}") from e
