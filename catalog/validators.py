import re
from typing import Any, List, Optional

from pydantic import BeforeValidator
from pydantic_core import PydanticCustomError

# HTML entities produced for user-supplied text before it is stored.
_ESCAPE_TABLE = str.maketrans({
    "&": "&amp;",
    '"': "&quot;",
    "'": "&#x27;",
    "<": "&lt;",
    ">": "&gt;",
    "/": "&#x2F;",
    "\\": "&#x5C;",
    "`": "&#96;",
})

_INT_RE = re.compile(r"^[-+]?[0-9]+$")

MIN_TEXT_LENGTH = 3
MAX_TEXT_LENGTH = 250


class TextValidator:
    """Checks and sanitizes the free-text fields (author name, book title)."""

    @staticmethod
    def escape(text: str) -> str:
        return text.translate(_ESCAPE_TABLE)

    @staticmethod
    def messages(value: Any, label: str) -> List[str]:
        """Every rule the value breaks, in rule order. Empty when it is valid."""
        messages = []
        if not isinstance(value, str):
            messages.append(f"{label} must be a string")
        text = "" if value is None else str(value)
        trimmed = text.strip()
        if not trimmed:
            messages.append(f"{label} is required")
        if not MIN_TEXT_LENGTH <= len(trimmed) <= MAX_TEXT_LENGTH:
            messages.append(f"{label} must be between {MIN_TEXT_LENGTH} and {MAX_TEXT_LENGTH} characters")
        return messages

    @staticmethod
    def clean(value: Any, label: str) -> str:
        """Trim and escape ``value`` or raise a pydantic error listing every broken rule."""
        messages = TextValidator.messages(value, label)
        if messages:
            # The full list rides in the context; the API handler expands it.
            raise PydanticCustomError("text_invalid", messages[0], {"messages": messages})
        return TextValidator.escape(value.strip())


class IdValidator:
    """Positive integer checks for path ids and foreign keys."""

    @staticmethod
    def parse_positive_int(value: Any) -> Optional[int]:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            number = value
        elif isinstance(value, float):
            if not value.is_integer():
                return None
            number = int(value)
        elif isinstance(value, str):
            candidate = value.strip()
            if not _INT_RE.match(candidate):
                return None
            number = int(candidate)
        else:
            return None
        return number if number > 0 else None


def positive_id(message: str) -> BeforeValidator:
    """Annotated metadata turning the raw value into a positive int or failing with ``message``."""

    def check(value: Any) -> int:
        number = IdValidator.parse_positive_int(value)
        if number is None:
            raise PydanticCustomError("positive_int", message)
        return number

    return BeforeValidator(check)
