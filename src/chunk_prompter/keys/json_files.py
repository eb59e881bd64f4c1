"""JSON file API key loading."""

import json
from pathlib import Path

from ..errors import ConfigError


def load_from_json(file_path: str, key_name: str) -> str:
    """Load API key from JSON file.

    Args:
        file_path: Path to JSON file (``~`` is expanded)
        key_name: Key name in JSON (supports nested like "openai.api_key")

    Returns:
        API key string

    Raises:
        ConfigError: If the file is missing or invalid, or the key is absent

    Example JSON file:
    {
      "openai": "sk-...",
      "nested": {
        "compatible": "..."
      }
    }
    """
    path = Path(file_path).expanduser()

    if not path.exists():
        raise ConfigError(f"API key file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}", e) from e

    value = data
    for part in key_name.split("."):
        if isinstance(value, dict) and part in value:
            value = value[part]
        else:
            available = ", ".join(data.keys()) if isinstance(data, dict) else ""
            raise ConfigError(
                f"Key '{key_name}' not found in {path}\n"
                f"Available keys: {available}"
            )

    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"Key '{key_name}' in {path} is not a non-empty string")

    return value.strip()
