"""
Validation and normalization of event and booking input.

Everything here is a pure function from raw input to a normalized value, or a
ValidationError. The record managers call these immediately before writing,
so no persisted record can skip them.
"""

import json
import re
from typing import Any, Dict, Iterable, List, Mapping

import pandas as pd

from devevents.core.exceptions import ValidationError
from devevents.schemas.event import EVENT_LIST_FIELDS, EVENT_TEXT_FIELDS

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SLUG_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")

_TIME_24H = re.compile(r"^([0-9]{1,2}):([0-9]{2})$", re.ASCII)
_TIME_12H = re.compile(r"^([0-9]{1,2})(?::([0-9]{2}))?\s*(am|pm)$", re.ASCII)


def is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


def generate_slug(title: str) -> str:
    """Build a URL-friendly slug: "Re: Launch Party!!" -> "re-launch-party"."""
    slug = title.lower().strip()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def normalize_date(value: str) -> str:
    """Parse any date pandas understands and return the UTC calendar day."""
    if not is_non_empty_string(value):
        raise ValidationError('Field "date" is required and must be a non-empty string.')

    try:
        parsed = pd.to_datetime(value.strip(), utc=True)
    except (ValueError, TypeError, OverflowError) as e:
        raise ValidationError(f"Invalid date format: {value!r}") from e

    if pd.isna(parsed):
        raise ValidationError(f"Invalid date format: {value!r}")

    return parsed.strftime("%Y-%m-%d")


def normalize_time(value: str) -> str:
    """Normalize "14:30", "9:05", "2:30 pm" or "11 am" to 24h HH:MM."""
    if not is_non_empty_string(value):
        raise ValidationError('Field "time" is required and must be a non-empty string.')

    trimmed = value.strip().lower()

    match = _TIME_24H.match(trimmed)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour > 23 or minute > 59:
            raise ValidationError("Invalid time value. Hour must be 0-23 and minute 0-59.")
        return f"{hour:02d}:{minute:02d}"

    match = _TIME_12H.match(trimmed)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2)) if match.group(2) else 0
        meridiem = match.group(3)
        if hour < 1 or hour > 12 or minute > 59:
            raise ValidationError("Invalid time value in 12h format. Hour must be 1-12 and minute 0-59.")

        if meridiem == "pm" and hour != 12:
            hour += 12
        if meridiem == "am" and hour == 12:
            hour = 0
        return f"{hour:02d}:{minute:02d}"

    raise ValidationError("Invalid time format. Use HH:MM or 12h format like 2:30 pm.")


def normalize_email(value: str) -> str:
    if not is_non_empty_string(value):
        raise ValidationError("Email is required.")

    email = value.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email address format")
    return email


def _split_list_value(value: str, split_commas: bool) -> List[Any]:
    text = value.strip()
    if text.startswith("["):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON list: {text!r}") from e
        if not isinstance(parsed, list):
            raise ValidationError(f"Expected a JSON list, got {text!r}")
        return parsed
    return text.split(",") if split_commas else [text]


def coerce_string_list(value: Any, field: str, split_commas: bool = False) -> List[str]:
    """Accept a list of strings or a single form value.

    A single value may be a JSON array; with split_commas it may also be
    comma-separated text.
    """
    if isinstance(value, (list, tuple)) and len(value) == 1 and isinstance(value[0], str):
        value = value[0]

    if isinstance(value, str):
        items: Iterable[Any] = _split_list_value(value, split_commas)
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        raise ValidationError(f'Field "{field}" must be a non-empty array of strings.')

    result = []
    for item in items:
        if not is_non_empty_string(item):
            raise ValidationError(f'Field "{field}" must contain only non-empty strings.')
        result.append(item.strip())

    if not result:
        raise ValidationError(f'Field "{field}" must be a non-empty array of strings.')
    return result


def normalize_event(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate raw event fields and return the normalized record data.

    Raises ValidationError on the first problem found. The slug is not part of
    the result; it depends on the store and is assigned by the event service.
    """
    allowed = set(EVENT_TEXT_FIELDS) | set(EVENT_LIST_FIELDS)
    unknown = sorted(set(fields) - allowed)
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(unknown)}")

    data: Dict[str, Any] = {}
    for field in EVENT_TEXT_FIELDS:
        value = fields.get(field)
        if not is_non_empty_string(value):
            raise ValidationError(f'Field "{field}" is required and must be a non-empty string.')
        data[field] = value.strip()

    data["date"] = normalize_date(data["date"])
    data["time"] = normalize_time(data["time"])

    data["agenda"] = coerce_string_list(fields.get("agenda"), "agenda")
    # Tags behave like a set but keep the order they were given in
    data["tags"] = list(dict.fromkeys(coerce_string_list(fields.get("tags"), "tags", split_commas=True)))

    if not generate_slug(data["title"]):
        raise ValidationError("Title must contain at least one letter or digit.")

    return data
