# reelsync/infrastructure/config/validators/schema_validator.py
import copy
import logging
from typing import Dict, Any, Tuple, List

import jsonschema


class SchemaValidator:
    """
    Validates configuration data against JSON schemas.
    """
    def __init__(self):
        self.logger = logging.getLogger("infrastructure.config.validator")

    def validate(self, config: Dict[str, Any], schema: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        Validate a configuration against a JSON schema.

        Returns:
            Tuple of (is_valid, error_messages). All violations are reported,
            not just the first one.
        """
        try:
            validator_cls = jsonschema.validators.validator_for(schema)
            validator_cls.check_schema(schema)
        except jsonschema.exceptions.SchemaError as e:
            self.logger.error(f"Invalid schema: {e.message}")
            return False, [f"Schema error: {e.message}"]

        errors = []
        for error in sorted(validator_cls(schema).iter_errors(config), key=lambda e: list(e.path)):
            error_path = '.'.join(str(p) for p in error.path) if error.path else 'root'
            errors.append(f"At {error_path}: {error.message}")

        for message in errors:
            self.logger.error(f"Schema validation error: {message}")

        return not errors, errors

    def validate_with_defaults(self, config: Dict[str, Any],
                               schema: Dict[str, Any]) -> Tuple[bool, List[str], Dict[str, Any]]:
        """
        Fill in schema defaults, then validate.

        Returns:
            Tuple of (is_valid, error_messages, updated_config). The input is not modified.
        """
        updated_config = copy.deepcopy(config)
        self._apply_defaults(updated_config, schema)
        is_valid, errors = self.validate(updated_config, schema)
        return is_valid, errors, updated_config

    def _apply_defaults(self, node: Any, schema: Dict[str, Any], path: str = "root"):
        """
        Recursively copy ``default`` values of object properties into ``node``.

        Absent nested objects that declare properties and require none are
        created empty so their own defaults can be applied.
        """
        if not isinstance(schema, dict):
            return

        if isinstance(node, dict):
            for prop_name, prop_schema in schema.get('properties', {}).items():
                if not isinstance(prop_schema, dict):
                    continue
                if prop_name not in node:
                    if 'default' in prop_schema:
                        node[prop_name] = copy.deepcopy(prop_schema['default'])
                        self.logger.debug(f"Applied default value for {path}.{prop_name}")
                    elif (prop_schema.get('type') == 'object' and 'properties' in prop_schema
                          and not prop_schema.get('required')):
                        node[prop_name] = {}
                if prop_name in node:
                    self._apply_defaults(node[prop_name], prop_schema, f"{path}.{prop_name}")

        elif isinstance(node, list) and isinstance(schema.get('items'), dict):
            for i, item in enumerate(node):
                self._apply_defaults(item, schema['items'], f"{path}[{i}]")
