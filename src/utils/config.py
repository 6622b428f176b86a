"""Environment-backed settings. Uses python-dotenv.

Callers use the accessor functions below rather than reading `os.environ`
directly.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"


def _project_root() -> Path:
    """Resolve project root (the directory holding src/)."""
    return Path(__file__).resolve().parent.parent.parent


def load_config() -> None:
    """
    Load .env from project root. Idempotent; values already exported in the
    environment take precedence.
    """
    load_dotenv(_project_root() / ".env", override=False)


def get_optional(key: str, default: str = "") -> str:
    """Get optional env var; return default if missing or empty."""
    load_config()
    val = os.getenv(key, "").strip()
    return val if val else default


# --- Public config accessors ---


def api_key() -> Optional[str]:
    """Gemini credential. Missing means AI descriptions are disabled."""
    return get_optional("API_KEY") or get_optional("GEMINI_API_KEY") or None


def gemini_model() -> str:
    return get_optional("GEMINI_MODEL", DEFAULT_GEMINI_MODEL)


def db_path() -> str:
    """SQLite file backing the cart/session key-value store."""
    return get_optional(
        "POLIMARKET_DB", str(_project_root() / "data" / "polimarket.sqlite")
    )


def log_file() -> Optional[str]:
    """Optional log destination; the TUI owns the terminal while running."""
    return get_optional("POLIMARKET_LOG") or None


def debug_enabled() -> bool:
    return bool(get_optional("DEBUG"))
