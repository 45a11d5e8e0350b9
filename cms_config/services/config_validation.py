"""Value typing and validation for system configuration entries.

Stored values are always strings. Their shape is a soft convention derived
from the key name (``OTP_EXPIRY_MINUTES`` holds an integer string,
``GUEST_COMPLAINT_ENABLED`` holds ``"true"``/``"false"``,
``NOTIFICATION_SETTINGS`` holds JSON text). The convention is only enforced
at the write boundary of the HTTP layer; the cache and the store accept
whatever they are given.
"""
from typing import Any, Optional
import json
import re

BOOLEAN = "boolean"
NUMBER = "number"
JSON = "json"
STRING = "string"

# Matched against "_"-separated key tokens, so MAP_COUNTRY_CODES is not a COUNT
BOOLEAN_KEY_MARKERS = ("ENABLED", "MODE")
NUMERIC_KEY_MARKERS = ("MINUTES", "HOURS", "SIZE", "LENGTH", "LIMIT", "DAYS", "COUNT")
JSON_KEY_SUFFIXES = ("_SETTINGS", "_BOUNDARY", "_PRIORITIES", "_STATUSES")

# Keys whose names trip a marker but hold free text
KEY_TYPE_OVERRIDES = {
    "APP_LOGO_SIZE": STRING,  # small / medium / large
    "CONTACT_OFFICE_HOURS": STRING,
}

_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")
_UNSIGNED_INT_RE = re.compile(r"^\d+$")


class ConfigValidationError(ValueError):
    """A configuration value does not match the shape its key implies."""

    def __init__(self, key: str, expected_type: str, message: Optional[str] = None):
        self.key = key
        self.expected_type = expected_type
        super().__init__(message or f"Invalid value for {key}: expected {expected_type}")


def infer_value_type(value: Optional[str]) -> str:
    """Classify a stored value as boolean, number, json or string."""
    if value is None:
        return STRING
    if value in ("true", "false"):
        return BOOLEAN
    if _NUMBER_RE.match(value):
        return NUMBER
    if value.startswith("{") or value.startswith("["):
        try:
            json.loads(value)
            return JSON
        except ValueError:
            return STRING
    return STRING


def expected_value_type(key: str) -> Optional[str]:
    """Value type implied by the key name, or None when the name says nothing."""
    upper_key = key.upper()
    if upper_key in KEY_TYPE_OVERRIDES:
        return KEY_TYPE_OVERRIDES[upper_key]

    tokens = upper_key.split("_")
    if any(marker in tokens for marker in BOOLEAN_KEY_MARKERS):
        return BOOLEAN
    if upper_key.endswith(JSON_KEY_SUFFIXES):
        return JSON
    if any(marker in tokens for marker in NUMERIC_KEY_MARKERS):
        return NUMBER
    return None


def serialize_value(value: Any) -> str:
    """Convert a Python value into its stored string form."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def parse_config_value(value: Optional[str], value_type: Optional[str] = None) -> Any:
    """Convert a stored string back into a Python value.

    Falls back to the raw string when the value does not parse as the
    requested type.
    """
    if value is None:
        return None
    value_type = value_type or infer_value_type(value)

    if value_type == BOOLEAN:
        return value.lower() == "true"
    if value_type == NUMBER:
        try:
            return int(value)
        except ValueError:
            try:
                return float(value)
            except ValueError:
                return value
    if value_type == JSON:
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


def validate_config_value(key: str, value: Any) -> str:
    """
    Validate a value against the type its key implies.

    Args:
        key: Configuration key
        value: Raw value from the caller (string, bool, number, dict or list)

    Returns:
        The serialized string to store

    Raises:
        ConfigValidationError: If the serialized value does not match the expected type
    """
    serialized = serialize_value(value)
    expected = expected_value_type(key)

    if expected == BOOLEAN and serialized not in ("true", "false"):
        raise ConfigValidationError(
            key, BOOLEAN, f"{key} must be a boolean ('true' or 'false'), got {serialized!r}"
        )
    if expected == NUMBER and not _UNSIGNED_INT_RE.match(serialized):
        raise ConfigValidationError(
            key, NUMBER, f"{key} must be a non-negative integer, got {serialized!r}"
        )
    if expected == JSON:
        try:
            json.loads(serialized)
        except ValueError as e:
            raise ConfigValidationError(key, JSON, f"{key} must be valid JSON: {e}") from e

    return serialized
