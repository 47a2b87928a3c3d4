"""Built-in validation rules.

Rules are written in entity metadata as a bare name or a name with
arguments:

    validation:
      name: [mandatory, {string: [2, 50]}]
      price: [{number: [0]}]
      status: [{choice: [draft, published]}]

Available rules:
- mandatory: Value must be supplied and non-empty
- string [min, max]: Length bounds
- integer [min, max]: Whole number, optional bounds
- number [min, max]: Decimal number, optional bounds
- boolean: 0/1, true/false, yes/no
- email, url: Format checks
- date, datetime: ISO 8601
- regex [pattern]: Full match
- choice [options...]: One of the listed values
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from restmapper.validation.registry import RuleRegistry

# Email: Basic RFC 5322 compliant pattern
EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
)

# URL: Basic URL pattern
URL_PATTERN = re.compile(
    r"^https?://[^\s/$.?#].[^\s]*$",
    re.IGNORECASE
)

BOOLEAN_VALUES = {"0", "1", "true", "false", "yes", "no", "on", "off"}


def is_empty(value: Any) -> bool:
    """Check if a value is absent or empty."""
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return True
    # The MISSING sentinel is falsy and is neither a number nor a string
    return not value and not isinstance(value, (int, float, Decimal, str))


def mandatory(value: Any) -> str | None:
    if is_empty(value):
        return "is required"
    return None


def string(value: Any, min_length: int | None = None, max_length: int | None = None) -> str | None:
    length = len(str(value))
    if min_length is not None and length < min_length:
        return f"must be at least {min_length} characters"
    if max_length is not None and length > max_length:
        return f"must be at most {max_length} characters"
    return None


def _bounds(num: Any, min_val: Any, max_val: Any) -> str | None:
    if min_val is not None and num < min_val:
        return f"must be at least {min_val}"
    if max_val is not None and num > max_val:
        return f"must be at most {max_val}"
    return None


def integer(value: Any, min_val: int | None = None, max_val: int | None = None) -> str | None:
    if isinstance(value, bool):
        return "must be an integer"
    try:
        num = int(str(value).strip())
    except ValueError:
        return "must be an integer"
    return _bounds(num, min_val, max_val)


def number(value: Any, min_val: float | None = None, max_val: float | None = None) -> str | None:
    if isinstance(value, bool):
        return "must be a number"
    try:
        num = Decimal(str(value).strip())
    except InvalidOperation:
        return "must be a number"
    if not num.is_finite():
        return "must be a number"
    return _bounds(
        num,
        Decimal(str(min_val)) if min_val is not None else None,
        Decimal(str(max_val)) if max_val is not None else None,
    )


def boolean(value: Any) -> str | None:
    if isinstance(value, bool) or str(value).strip().lower() in BOOLEAN_VALUES:
        return None
    return "must be a boolean"


def email(value: Any) -> str | None:
    if not EMAIL_PATTERN.match(str(value)):
        return "must be a valid email address"
    return None


def url(value: Any) -> str | None:
    if not URL_PATTERN.match(str(value)):
        return "must be a valid URL"
    return None


def iso_date(value: Any) -> str | None:
    try:
        date.fromisoformat(str(value))
    except ValueError:
        return "must be a date (YYYY-MM-DD)"
    return None


def iso_datetime(value: Any) -> str | None:
    try:
        datetime.fromisoformat(str(value))
    except ValueError:
        return "must be a date and time (ISO 8601)"
    return None


def regex(value: Any, pattern: str) -> str | None:
    if not re.fullmatch(pattern, str(value)):
        return "has an invalid format"
    return None


def choice(value: Any, *options: Any) -> str | None:
    allowed = {str(o) for o in options}
    if str(value) not in allowed:
        return f"must be one of: {', '.join(str(o) for o in options)}"
    return None


BUILTIN_RULES = {
    "string": string,
    "integer": integer,
    "number": number,
    "boolean": boolean,
    "email": email,
    "url": url,
    "date": iso_date,
    "datetime": iso_datetime,
    "regex": regex,
    "choice": choice,
}


def register_builtin_rules() -> None:
    """Register the built-in rules. Safe to call more than once."""
    RuleRegistry.register("mandatory", mandatory, checks_presence=True)
    for name, func in BUILTIN_RULES.items():
        RuleRegistry.register(name, func)
