"""Shape checks for badge, page and collection input."""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from badgehub.domain.badges.models import (
    DEFAULT_BACKGROUND_COLOR,
    FOREVER_MS,
    MAX_TITLE_LENGTH,
    BadgeDraft,
    IssuanceConfig,
)
from badgehub.domain.badges.results import StageOk, StageResult, rejected

_COLOR_RE = re.compile(r"^#[0-9A-F]{6}$", re.IGNORECASE)
_URL_RE = re.compile(
    r"^(https?://)?"
    r"((([a-z\d]([a-z\d-]*[a-z\d])*)\.)+[a-z]{2,}|"
    r"((\d{1,3}\.){3}\d{1,3}))"
    r"(:\d+)?(/[-a-z\d%_.~+]*)*"
    r"(\?[;&a-z\d%_.~+=-]*)?"
    r"(#[-a-z\d_]*)?$",
    re.IGNORECASE,
)


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def is_non_empty_string(value: Any) -> bool:
    return is_string(value) and value.strip() != ""


def is_boolean(value: Any) -> bool:
    return isinstance(value, bool)


def is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def is_valid_string_array(value: Any) -> bool:
    return isinstance(value, list) and all(is_string(item) for item in value)


def is_color(value: Any) -> bool:
    return is_string(value) and bool(_COLOR_RE.match(value))


def is_url(value: Any) -> bool:
    return is_string(value) and bool(_URL_RE.match(value))


def is_path_segment(value: Any) -> bool:
    """True for ids that can be used as a single document path segment."""
    return is_non_empty_string(value) and "/" not in value


def is_length_at_most(value: str, length: int) -> bool:
    return len(value) <= length


def dedupe(values: list[str]) -> list[str]:
    """Trim and de-duplicate, keeping first occurrence order."""
    seen: dict[str, None] = {}
    for value in values:
        seen.setdefault(value.strip(), None)
    return [value for value in seen if value]


def _text(raw: Mapping[str, Any], key: str, default: str = "") -> Any:
    value = raw.get(key)
    if value is None or value == "":
        return default
    return value


def validate_badge_input(
    raw: Mapping[str, Any],
    caller_id: Optional[str],
    now_ms: int,
    config: IssuanceConfig,
) -> StageResult[BadgeDraft]:
    """Check and normalise a badge request. No I/O happens here."""
    title = raw.get("title")
    issuer = raw.get("issuer")
    recipients = raw.get("recipients")
    description = _text(raw, "description")
    external_url = _text(raw, "externalUrl")
    image_url = _text(raw, "imageUrl", config.default_image_url)
    background_color = _text(raw, "backgroundColor", DEFAULT_BACKGROUND_COLOR)

    valid = (
        is_non_empty_string(title)
        and is_non_empty_string(issuer)
        and is_valid_string_array(recipients)
        and is_string(description)
        and is_string(external_url)
        and is_string(image_url)
        and is_string(background_color)
    )
    if not valid:
        return rejected(
            "invalid_format",
            "String inputs are not formatted correctly. Title and issuer are required not to be empty, "
            "recipients must be an array of strings and all else must be valid strings.",
        )

    title = title.strip()
    issuer = issuer.strip()
    description = description.strip()
    external_url = external_url.strip()
    image_url = image_url.strip() or config.default_image_url
    background_color = background_color.strip() or DEFAULT_BACKGROUND_COLOR
    recipients = dedupe(recipients)

    if not is_length_at_most(title, MAX_TITLE_LENGTH):
        return rejected("title_too_long", f"Title must be at most {MAX_TITLE_LENGTH} characters")
    if not is_length_at_most(issuer, MAX_TITLE_LENGTH):
        return rejected("issuer_too_long", f"Issuer must be at most {MAX_TITLE_LENGTH} characters")
    if not recipients:
        return rejected("no_recipients", "Must be at least one recipient.")
    if not all(is_path_segment(recipient) for recipient in recipients):
        return rejected("invalid_recipient", "Recipients may not contain '/'")
    if not is_path_segment(issuer):
        return rejected("invalid_issuer", "Issuer may not contain '/'")
    if external_url and not is_url(external_url):
        return rejected("invalid_external_url", "externalUrl is not a valid URL")
    if not is_url(image_url):
        return rejected("invalid_image_url", "imageUrl is not a valid URL")
    if not is_color(background_color):
        return rejected("invalid_color", "backgroundColor must be a hex color such as #1a2b3c")

    if not caller_id or caller_id != issuer:
        return rejected(
            "issuer_mismatch",
            "You can not issue in someone else's name. Change issuer to your public key",
        )

    valid_dates = raw.get("validDates")
    if not is_boolean(valid_dates):
        return rejected("invalid_valid_dates", "validDates must be a boolean")

    if valid_dates:
        start = raw.get("validDateStart")
        end = raw.get("validDateEnd")
        if not is_integer(start) or not is_integer(end):
            return rejected(
                "invalid_date_range",
                "validDateStart and validDateEnd must be integers counting milliseconds since 1970-01-01T00:00:00Z",
            )
        start, end = int(start), int(end)
        if start >= end:
            return rejected("invalid_date_range", "validDateStart must be less than validDateEnd")
    else:
        start, end = now_ms, FOREVER_MS

    return StageOk(
        BadgeDraft(
            title=title,
            issuer=issuer,
            recipients=recipients,
            description=description,
            image_url=image_url,
            external_url=external_url,
            background_color=background_color,
            valid_dates=valid_dates,
            valid_date_start=start,
            valid_date_end=end,
            date_created=now_ms,
        )
    )
