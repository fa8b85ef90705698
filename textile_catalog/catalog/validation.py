"""Validation and normalization of product submissions.

These rules belong to the catalog, not to any storage schema: both
repository backends receive values that already passed through here.
"""

import json
import math
from typing import Any

from textile_catalog.domain.entities import DESCRIPTIVE_FIELDS, ProductSubmission
from textile_catalog.domain.exceptions import (
    MalformedInputError,
    MissingFieldError,
    ProductValidationError,
)
from textile_catalog.domain.value_objects import (
    RawSerializedText,
    RawSpecifications,
    RawStructured,
)

# Attribute name to the field name clients send
REQUIRED_FIELDS = {
    "name": "name",
    "main_category": "mainCategory",
    "sub_category": "subCategory",
}

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off"})


def coerce_price(value: Any) -> float:
    """Coerce client price input to a number.

    Absent, blank, non-numeric and non-finite input all become 0.

    Args:
        value: Raw price (number, numeric string, or anything else).

    Returns:
        Price as float.

    Raises:
        ProductValidationError: If the price is a negative number.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    try:
        price = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return 0.0

    if not math.isfinite(price):
        return 0.0
    if price < 0:
        raise ProductValidationError(
            f"Price cannot be negative: {value}",
            field="price",
        )
    return price


def coerce_in_stock(value: Any) -> bool:
    """Parse an availability flag.

    Args:
        value: Bool or one of true/false/1/0/yes/no/on/off.

    Returns:
        Parsed flag.

    Raises:
        ProductValidationError: On unrecognized input.
    """
    if isinstance(value, bool):
        return value

    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ProductValidationError(
        f"Invalid inStock value: {value!r}",
        field="inStock",
    )


def decode_specifications(text: str) -> dict[str, Any]:
    """Decode serialized specifications.

    Raises:
        MalformedInputError: If the text is not a JSON object.
    """
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedInputError("specifications", e.msg) from e

    if not isinstance(decoded, dict):
        raise MalformedInputError(
            "specifications",
            f"expected an object, got {type(decoded).__name__}",
        )
    return decoded


def resolve_specifications(raw: RawSpecifications | None) -> dict[str, Any]:
    """Resolve raw specifications input into a canonical mapping.

    Args:
        raw: Structured or serialized specifications, or None.

    Returns:
        Specifications mapping (empty when absent).

    Raises:
        MalformedInputError: If serialized text cannot be decoded.
    """
    if raw is None:
        return {}
    if isinstance(raw, RawStructured):
        return dict(raw.data)
    if isinstance(raw, RawSerializedText):
        if not raw.text.strip():
            return {}
        return decode_specifications(raw.text)
    raise TypeError(f"Unsupported specifications input: {type(raw).__name__}")


def required_text(field: str, value: str | None) -> str:
    """Return ``value`` stripped, rejecting absent or blank text.

    Raises:
        MissingFieldError: If the value is absent or blank.
    """
    text = value.strip() if value is not None else ""
    if not text:
        raise MissingFieldError(field)
    return text


def validate_submission(submission: ProductSubmission, creating: bool) -> dict[str, Any]:
    """Validate text fields of a submission and collect supplied values.

    On create every required field must be present. On update only the
    supplied ones are checked.

    Args:
        submission: Raw submission.
        creating: True for create, False for partial update.

    Returns:
        Attribute name to cleaned value, for supplied text fields only.

    Raises:
        MissingFieldError: If a required field is absent or blank.
    """
    values: dict[str, Any] = {}

    for field, label in REQUIRED_FIELDS.items():
        value = getattr(submission, field)
        if value is None and not creating:
            continue
        values[field] = required_text(label, value)

    if submission.nested_category is not None:
        values["nested_category"] = submission.nested_category.strip()

    for field in DESCRIPTIVE_FIELDS:
        value = getattr(submission, field)
        if value is not None:
            values[field] = value

    return values

