"""
Request validation for the HTTP layer.

Everything here runs before storage or the model backend is touched, and
nothing here has side effects: raw input goes in, a typed value comes out or
a ValidationFailed is raised with details the caller can act on.
"""

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from errors import InvalidIdentifier, ValidationFailed
from models import ActionItemUpdate, TranscriptRequest

UPDATABLE_FIELDS = ("taskDescription", "owner", "dueDate", "isDone", "tags")

# Largest value a signed 64-bit INTEGER column can hold
MAX_IDENTIFIER = 2**63 - 1


def _details_from(exc: ValidationError) -> List[Dict[str, str]]:
    details = []
    for error in exc.errors(include_url=False):
        field = ".".join(str(part) for part in error["loc"]) or "body"
        details.append({"field": field, "message": error["msg"]})
    return details


def _coerce_int(text: str) -> Optional[int]:
    if not text or "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


def parse_identifier(raw: Any) -> int:
    """Coerce a path or body identifier to a positive integer."""
    if isinstance(raw, bool) or raw is None:
        raise InvalidIdentifier(raw)
    if isinstance(raw, int):
        value = raw
    else:
        value = _coerce_int(str(raw).strip())
        if value is None:
            raise InvalidIdentifier(raw)
    if value <= 0 or value > MAX_IDENTIFIER:
        raise InvalidIdentifier(raw)
    return value


def _validate(model: type, payload: Any) -> BaseModel:
    if not isinstance(payload, dict):
        raise ValidationFailed(details=[{"field": "body", "message": "Expected a JSON object"}])
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailed(details=_details_from(exc)) from exc


def validate_transcript_request(payload: Any) -> TranscriptRequest:
    return _validate(TranscriptRequest, payload)


def validate_action_item_update(payload: Any) -> Dict[str, Any]:
    """
    Validate a partial action item update.

    Unknown keys are rejected up front against UPDATABLE_FIELDS so nothing
    outside the allow-list can ever reach a storage write. The returned dict
    holds only the fields the caller supplied, keyed by column name.
    """
    if not isinstance(payload, dict):
        raise ValidationFailed(details=[{"field": "body", "message": "Expected a JSON object"}])

    unknown = sorted(str(key) for key in payload if key not in UPDATABLE_FIELDS)
    if unknown:
        raise ValidationFailed(
            details=[{"field": key, "message": "Unrecognized field"} for key in unknown]
        )

    update = _validate(ActionItemUpdate, payload)
    return update.model_dump(exclude_unset=True)
