"""Unit tests for device request and response DTOs."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from helpers import T0, make_record
from schemas.dto.requests.device import (
    MAX_NOTES_LENGTH,
    UINT32_MAX,
    IntroduceMyselfRequest,
    ListLocationsRequest,
    RevokeTokenRequest,
    SubmitLocationRequest,
)
from schemas.dto.responses.common import ErrorResponse, HealthResponse
from schemas.dto.responses.device import (
    LocationSnapshot,
    StorageInfoResponse,
    TokenInfo,
)
from schemas.models.identity import Permissions, TokenEntry
from schemas.models.location import WifiSighting

TOKEN = "ab" * 16


# ── Requests ──────────────────────────────────────────────────────────────────


class TestIntroduceMyselfRequest:
    def test_defaults(self):
        req = IntroduceMyselfRequest()
        assert req.registration_key is None
        assert req.remote_wipe_enabled is False
        assert req.can_read_nearby_devices is False


class TestSubmitLocationRequest:
    def test_minimal(self):
        req = SubmitLocationRequest(token=TOKEN)
        assert req.emergency is False
        assert req.location is None
        assert req.nearby_wifi == []

    def test_token_required(self):
        with pytest.raises(ValidationError):
            SubmitLocationRequest()

    def test_full_payload(self):
        req = SubmitLocationRequest.model_validate(
            {
                "token": TOKEN,
                "emergency": True,
                "location": {"degrees_latitude": 1.5, "degrees_longitude": 2.5},
                "velocity": {"meters_per_second_speed": 3, "bearing": 180},
                "notes": "on the trail",
                "nearby_wifi": [{"ssid": "cafe", "bssid": "00:11:22:33:44:55"}],
                "expected_next_update_time": "2024-03-01T13:00:00Z",
            }
        )
        assert req.location.degrees_latitude == 1.5
        assert req.nearby_wifi == [WifiSighting(ssid="cafe", bssid="00:11:22:33:44:55")]
        assert req.expected_next_update_time == T0 + timedelta(hours=1)

    def test_server_fields_ignored(self):
        req = SubmitLocationRequest.model_validate(
            {"token": TOKEN, "update_time": "1999-01-01T00:00:00Z", "remote_addr": "6.6.6.6"}
        )
        assert not hasattr(req, "update_time")
        assert not hasattr(req, "remote_addr")

    def test_notes_too_long(self):
        with pytest.raises(ValidationError):
            SubmitLocationRequest(token=TOKEN, notes="x" * (MAX_NOTES_LENGTH + 1))

    def test_bad_next_update_time(self):
        with pytest.raises(ValidationError):
            SubmitLocationRequest(token=TOKEN, expected_next_update_time="soon")


class TestListLocationsRequest:
    def test_defaults(self):
        req = ListLocationsRequest(token=TOKEN)
        assert req.since is None and req.until is None
        assert req.limit == 100

    def test_epoch_bounds(self):
        req = ListLocationsRequest(token=TOKEN, since=0, until="1709294400")
        assert req.since == datetime(1970, 1, 1, tzinfo=timezone.utc)
        assert req.until == T0

    @pytest.mark.parametrize("limit", [0, UINT32_MAX])
    def test_limit_bounds_accepted(self, limit):
        assert ListLocationsRequest(token=TOKEN, limit=limit).limit == limit

    @pytest.mark.parametrize("limit", [-1, UINT32_MAX + 1])
    def test_limit_out_of_range(self, limit):
        with pytest.raises(ValidationError):
            ListLocationsRequest(token=TOKEN, limit=limit)


def test_revoke_target_optional():
    assert RevokeTokenRequest(token=TOKEN).revoked_token is None


# ── Responses ─────────────────────────────────────────────────────────────────


def test_snapshot_hides_remote_addr():
    record = make_record(remote_addr="10.9.9.9", notes="hi")
    snap = LocationSnapshot.from_record(record)
    dumped = snap.model_dump()
    assert "remote_addr" not in dumped
    assert dumped["notes"] == "hi"
    assert snap.update_time == record.update_time


def test_token_info_from_entry():
    entry = TokenEntry(
        token=bytes.fromhex(TOKEN),
        secret_key=b"s" * 16,
        permissions=Permissions(read_locations=True, stats=True),
        not_before=T0,
    )
    info = TokenInfo.from_entry(entry)
    assert info.token == TOKEN
    assert info.permissions == ["read_locations", "stats"]
    assert info.not_after is None


def test_storage_info_since_nullable():
    resp = StorageInfoResponse(
        locations_count=0,
        locations_limit=100,
        bytes_storage_consumed=0,
        bytes_storage_limit=0,
    )
    assert resp.since is None


def test_error_response_optional_fields():
    err = ErrorResponse(error="bad", code="validation_error")
    assert err.field is None
    assert err.details is None


def test_health_response():
    resp = HealthResponse(status="healthy", checks={"storage": "ok"})
    assert resp.checks["storage"] == "ok"
