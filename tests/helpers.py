"""Plain test helpers shared by unit and integration tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from schemas.models.identity import Introduction
from schemas.models.location import Location, LocationRecord

T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_record(seconds: float = 0, **overrides) -> LocationRecord:
    """A LocationRecord *seconds* after T0."""
    fields = dict(
        update_time=T0 + timedelta(seconds=seconds),
        location=Location(degrees_latitude=30.08, degrees_longitude=-81.40),
    )
    fields.update(overrides)
    return LocationRecord(**fields)


def make_introduction(**overrides) -> Introduction:
    fields = dict(introduced_at=T0, remote_addr="10.0.0.1")
    fields.update(overrides)
    return Introduction(**fields)
