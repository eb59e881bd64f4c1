"""API key loading backends."""

from .env_vars import load_from_env
from .json_files import load_from_json

DEFAULT_API_KEY_ENV = "OPENAI_API_KEY"

__all__ = ["DEFAULT_API_KEY_ENV", "load_from_env", "load_from_json"]
