"""
Location history model.

A ``LocationRecord`` is one append-only report. ``update_time`` and
``remote_addr`` are assigned by the server when the report is received;
everything else comes from the device.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    degrees_latitude: float = Field(..., ge=-90, le=90)
    degrees_longitude: float = Field(..., ge=-180, le=180)
    meters_elevation: float = 0.0


class Velocity(BaseModel):
    model_config = ConfigDict(frozen=True)

    meters_per_second_speed: float = Field(default=0.0, ge=0)
    bearing: float = Field(default=0.0, ge=0, le=360)  # degrees from true north


class WifiSighting(BaseModel):
    model_config = ConfigDict(frozen=True)

    ssid: str = ""
    bssid: str = ""
    signal_dbm: Optional[float] = None


class BluetoothSighting(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str = ""
    name: str = ""
    signal_dbm: Optional[float] = None


class LocationRecord(BaseModel):
    """One stored report."""

    model_config = ConfigDict(frozen=True)

    update_time: datetime
    expected_next_update_time: Optional[datetime] = None
    location: Optional[Location] = None
    velocity: Optional[Velocity] = None
    emergency: bool = False
    notes: str = ""
    nearby_wifi: tuple[WifiSighting, ...] = ()
    nearby_bluetooth: tuple[BluetoothSighting, ...] = ()
    remote_addr: Optional[str] = None
