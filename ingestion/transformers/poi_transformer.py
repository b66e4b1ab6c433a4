"""
Transform raw OpenChargeMap records into canonical POI documents
"""

import math
import uuid
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from core.exceptions import InvalidPoiError
from schemas.importer import MAX_SAFE_INTEGER
from schemas.poi import PoiDoc, RawPoi

ID_FIELD = "ID"
LAST_UPDATED_FIELD = "DateLastStatusUpdate"


def extract_external_id(raw: RawPoi) -> int:
    """
    Read the upstream identifier as a positive integer.

    Accepts integers and numeric strings.

    Raises:
        InvalidPoiError: missing, non-numeric, or not a positive safe integer
    """
    value = raw.get(ID_FIELD)
    if value is None:
        raise InvalidPoiError("Invalid POI: missing ID", context={"field_name": ID_FIELD})

    number = _as_number(value)
    if number is None:
        raise InvalidPoiError("Invalid POI: ID is not numeric", context={"field_name": ID_FIELD})

    if isinstance(number, float):
        if not math.isfinite(number) or not number.is_integer():
            raise InvalidPoiError(
                "Invalid POI: ID must be a positive integer", context={"field_name": ID_FIELD}
            )
        number = int(number)

    if number < 1 or number > MAX_SAFE_INTEGER:
        raise InvalidPoiError(
            "Invalid POI: ID must be a positive integer", context={"field_name": ID_FIELD}
        )
    return number


def _as_number(value: Any):
    """int/float for numeric input, None when the value is not numeric"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) else value
    if isinstance(value, str):
        text = value.strip()
        # int() and float() also accept non-ASCII digits
        if not text or not text.isascii():
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return None if math.isnan(number) else number
    return None


def try_extract_external_id(raw: RawPoi) -> Optional[int]:
    """External id for error context, or None when it cannot be read"""
    if not isinstance(raw, Mapping):
        return None
    try:
        return extract_external_id(raw)
    except InvalidPoiError:
        return None


def parse_optional_datetime(value: Any) -> Optional[datetime]:
    """
    Lenient timestamp parsing.

    Returns None for absent or unparsable values instead of raising: a bad
    timestamp never affects record identity, so it is dropped silently and
    not counted. Naive timestamps are taken as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def transform_poi(raw: RawPoi) -> PoiDoc:
    """
    Build the canonical document for one raw record.

    - ``ID`` becomes ``external_id`` (validated)
    - ``DateLastStatusUpdate`` becomes ``last_updated`` when parsable
    - a fresh UUIDv4 surrogate id is assigned on every call
    - the raw payload is kept verbatim and never mutated
    """
    external_id = extract_external_id(raw)

    return PoiDoc(
        id=str(uuid.uuid4()),
        external_id=external_id,
        last_updated=parse_optional_datetime(raw.get(LAST_UPDATED_FIELD)),
        raw=raw,
    )
