"""
Tests for validation functions.

Run with: pytest tests/test_validation.py -v
"""
import pytest
from fastapi import HTTPException

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.validation import (
    coerce_status,
    coerce_status_filter,
    ensure_transition_allowed,
    validate_id_list,
)
from models import ArtStatus, check_transition


class TestCoerceStatus:
    """Tests for art status coercion."""

    def test_exact_value(self):
        assert coerce_status("APPROVED") == ArtStatus.APPROVED

    def test_case_and_spaces_ignored(self):
        assert coerce_status("  production ") == ArtStatus.PRODUCTION

    def test_enum_passes_through(self):
        assert coerce_status(ArtStatus.SHIPPED) is ArtStatus.SHIPPED

    def test_unknown_status_raises_400(self):
        with pytest.raises(HTTPException) as exc:
            coerce_status("PAINTING")
        assert exc.value.status_code == 400
        assert "PENDING" in exc.value.detail

    def test_none_raises_400(self):
        with pytest.raises(HTTPException) as exc:
            coerce_status(None)
        assert exc.value.status_code == 400


class TestCoerceStatusFilter:
    """Tests for the status query filter."""

    def test_empty_means_no_filter(self):
        assert coerce_status_filter(None) is None
        assert coerce_status_filter("") is None

    def test_all_means_no_filter(self):
        assert coerce_status_filter("ALL") is None
        assert coerce_status_filter("all") is None

    def test_real_status(self):
        assert coerce_status_filter("pending") == ArtStatus.PENDING


class TestValidateIdList:
    """Tests for id list validation."""

    def test_valid_list(self):
        assert validate_id_list(["a", "b"]) == ["a", "b"]

    def test_duplicates_dropped_keeping_order(self):
        assert validate_id_list(["b", "a", "b"]) == ["b", "a"]

    def test_empty_list_raises(self):
        with pytest.raises(HTTPException) as exc:
            validate_id_list([])
        assert exc.value.status_code == 400

    def test_blank_id_raises(self):
        with pytest.raises(HTTPException) as exc:
            validate_id_list(["a", "  "])
        assert exc.value.status_code == 400


class TestTransitions:
    """Tests for the status state machine."""

    def test_forward_path_allowed(self):
        assert check_transition(ArtStatus.PENDING, ArtStatus.APPROVED) is None
        assert check_transition(ArtStatus.APPROVED, ArtStatus.PRODUCTION) is None
        assert check_transition(ArtStatus.PRODUCTION, ArtStatus.SHIPPED) is None

    def test_corrections_allowed(self):
        assert check_transition(ArtStatus.PRODUCTION, ArtStatus.APPROVED) is None
        assert check_transition(ArtStatus.APPROVED, ArtStatus.PENDING) is None

    def test_same_status_is_a_noop(self):
        assert check_transition(ArtStatus.SHIPPED, ArtStatus.SHIPPED) is None

    def test_skipping_approval_rejected(self):
        rejected = check_transition(ArtStatus.PENDING, ArtStatus.PRODUCTION)
        assert rejected is not None
        assert rejected.to_api()["current"] == "PENDING"
        assert rejected.to_api()["target"] == "PRODUCTION"

    def test_shipped_is_terminal(self):
        assert check_transition(ArtStatus.SHIPPED, ArtStatus.PENDING) is not None

    def test_permissive_mode_never_raises(self):
        ensure_transition_allowed(ArtStatus.SHIPPED, ArtStatus.PENDING, strict=False)

    def test_strict_mode_raises_409(self):
        with pytest.raises(HTTPException) as exc:
            ensure_transition_allowed(ArtStatus.PENDING, ArtStatus.SHIPPED, strict=True)
        assert exc.value.status_code == 409
        assert exc.value.detail["error"] == "Status transition not allowed"
        assert exc.value.detail["details"]["target"] == "SHIPPED"
