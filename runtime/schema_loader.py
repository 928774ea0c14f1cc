"""Schema loading and validation.

Validators for embedding provider responses and logged state records.
Schemas live in the top-level schema/ directory.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from jsonschema import Draft7Validator

SCHEMA_DIR = Path(__file__).resolve().parent.parent / "schema"


def _load_validator(filename: str, schema_dir: Optional[Path] = None) -> Draft7Validator:
    path = (schema_dir or SCHEMA_DIR) / filename
    with open(path, "r", encoding="utf-8") as f:
        schema = json.load(f)
    Draft7Validator.check_schema(schema)
    return Draft7Validator(schema)


def load_embedding_response_validator(schema_dir: Optional[Path] = None) -> Draft7Validator:
    """Load validator for embedding_response.schema.json."""
    return _load_validator("embedding_response.schema.json", schema_dir)


def load_state_record_validator(schema_dir: Optional[Path] = None) -> Draft7Validator:
    """Load validator for state_record.schema.json."""
    return _load_validator("state_record.schema.json", schema_dir)


def validate_or_error(
    validator: Draft7Validator,
    instance: Any
) -> Tuple[bool, Optional[Dict[str, Any]]]:
    """Validate instance against schema and return detailed error if invalid.
    
    Args:
        validator: Schema validator instance.
        instance: Instance to validate.
        
    Returns:
        Tuple of (is_valid, error_info). error_info is None if valid, otherwise
        contains keys: message, path (list), schema_path (list), type.
    """
    errors = list(validator.iter_errors(instance))
    if not errors:
        return True, None
    
    # Report the first error only
    error = errors[0]
    return False, {
        "message": error.message,
        "path": list(error.absolute_path),
        "schema_path": list(error.absolute_schema_path),
        "type": "schema"
    }
