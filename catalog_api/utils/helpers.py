# catalog_api/utils/helpers.py

import logging
import re
from datetime import datetime, timezone
from typing import Optional, Any, Dict

logger = logging.getLogger(__name__)

# --- Text Processing ---

def normalize_text(text: Optional[str]) -> Optional[str]:
    """
    Normalizes a string by converting to lowercase and stripping whitespace.
    Returns None if the input is None.

    Args:
        text: The input string or None.

    Returns:
        The normalized string or None.
    """
    if text is None:
        return None
    return text.lower().strip()

def literal_regex(text: str) -> Dict[str, str]:
    """
    Builds a case-insensitive MongoDB `$regex` clause that matches `text` literally
    anywhere in the field.

    Args:
        text: Raw user input, e.g. a search term.

    Returns:
        A dict usable as the value of a field in a MongoDB filter.
    """
    return {"$regex": re.escape(text), "$options": "i"}

# --- Time ---

def utc_now() -> datetime:
    """
    Current time as a timezone-aware UTC datetime, truncated to milliseconds
    because BSON dates carry no finer precision.
    """
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)

# --- Data Structure Helpers ---

def safe_get(data: Optional[Dict[str, Any]], key: str, default: Any = None) -> Any:
    """
    Safely retrieves a value from a dictionary, returning a default if the
    dictionary is None or the key is missing.

    Args:
        data: The dictionary (or None).
        key: The key to retrieve.
        default: The value to return if retrieval fails.

    Returns:
        The value associated with the key, or the default value.
    """
    if not isinstance(data, dict):
        return default
    return data.get(key, default)
