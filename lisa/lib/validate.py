"""
Schema checks for stored documents.

Every document kind under .lisa/ has a draft-07 schema in lisa/schemas/.
Stores call validate() on the way in (write_json/write_yaml with a schema
name) and on the way out (read_json/read_yaml with a schema name), so a
malformed document is reported where it crosses the store boundary.
"""

import json
from functools import lru_cache
from pathlib import Path

import jsonschema
from jsonschema.exceptions import best_match

SCHEMAS_DIR = Path(__file__).parent.parent / "schemas"


class ValidationError(Exception):
    """A document does not match its schema."""

    def __init__(self, schema_name: str, message: str, path: str = None, key: str = None):
        self.schema_name = schema_name
        self.path = path
        self.key = key
        text = f"[{schema_name}] {message}"
        if path:
            text += f" at {path}"
        if key:
            text += f" in {key}"
        super().__init__(text)


@lru_cache(maxsize=None)
def schema_validator(schema_name: str) -> jsonschema.Draft7Validator:
    """Compiled validator for lisa/schemas/<schema_name>.schema.json."""
    schema_path = SCHEMAS_DIR / f"{schema_name}.schema.json"
    if not schema_path.exists():
        raise ValidationError(schema_name, f"Schema file not found: {schema_path}")
    return jsonschema.Draft7Validator(json.loads(schema_path.read_text(encoding="utf-8")))


def validate(data, schema_name: str, key: str = None) -> None:
    """Raise ValidationError for the most relevant schema violation in data.

    key names the store document being read or written, for the message.
    """
    error = best_match(schema_validator(schema_name).iter_errors(data))
    if error is None:
        return
    path = ".".join(str(p) for p in error.absolute_path) or "(root)"
    raise ValidationError(schema_name, error.message, path, key)
