"""
Validation utilities for the orders API.
Ensures request data is usable and provides clear error messages.
"""
from typing import Any, List, Optional

from fastapi import HTTPException

from models import ArtStatus, check_transition


def coerce_status(value: Any) -> ArtStatus:
    """
    Coerce a raw status value (any case, surrounding spaces) to ArtStatus.

    Raises:
        HTTPException: 400 if the value is not a known status
    """
    if isinstance(value, ArtStatus):
        return value
    raw = str(value or "").strip().upper()
    try:
        return ArtStatus(raw)
    except ValueError:
        allowed = ", ".join(s.value for s in ArtStatus)
        raise HTTPException(
            status_code=400,
            detail=f"art_status must be one of {allowed}, got {value!r}"
        )


def coerce_status_filter(value: Optional[str]) -> Optional[ArtStatus]:
    """Status query filter: empty or "ALL" means no filter."""
    if not value or value.strip().upper() == "ALL":
        return None
    return coerce_status(value)


def validate_id_list(ids: List[str]) -> List[str]:
    """
    Ensure a non-empty list of non-blank ids; duplicates are dropped
    (first occurrence kept).

    Raises:
        HTTPException: 400 if the list is empty or contains blank ids
    """
    if not ids:
        raise HTTPException(status_code=400, detail="ids array is required")

    cleaned = []
    for raw in ids:
        oid = str(raw or "").strip()
        if not oid:
            raise HTTPException(status_code=400, detail="ids must not contain empty values")
        if oid not in cleaned:
            cleaned.append(oid)
    return cleaned


def ensure_transition_allowed(current: ArtStatus, target: ArtStatus, strict: bool) -> None:
    """
    In strict mode, reject moves outside ALLOWED_TRANSITIONS.

    Raises:
        HTTPException: 409 with the rejection details
    """
    if not strict:
        return
    rejected = check_transition(current, target)
    if rejected is not None:
        raise HTTPException(
            status_code=409,
            detail={"error": "Status transition not allowed", "details": rejected.to_api()},
        )
