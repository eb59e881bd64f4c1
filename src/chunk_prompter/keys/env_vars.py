"""Environment variable API key loading."""

import os

from ..errors import ConfigError


def load_from_env(var_name: str) -> str:
    """Load API key from environment variable.

    Args:
        var_name: Environment variable name

    Returns:
        API key string

    Raises:
        ConfigError: If variable not set or empty
    """
    value = os.environ.get(var_name)

    if not value or not value.strip():
        raise ConfigError(
            f"Environment variable '{var_name}' not set.\n"
            f"Set it with: export {var_name}=your-api-key"
        )

    return value.strip()
