#!/usr/bin/env python3
"""
Demo device agent.

Introduces itself to a running server, then submits one emergency report at a
fixed position and prints the server's answer.

Usage:
    python fmx_agent.py
    python fmx_agent.py --server http://127.0.0.1:8000 --lat 30.0832 --lon -81.4028
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional

import httpx

DEFAULT_SERVER = "http://127.0.0.1:8000"
API = "/api/v1"


def introduce(client: httpx.Client, registration_key: Optional[str] = None) -> str:
    """Register a new device and return its hex token."""
    body: dict = {}
    if registration_key:
        body["registration_key"] = registration_key
    response = client.post(f"{API}/introduce", json=body)
    response.raise_for_status()
    data = response.json()
    if data["nice_to_meet_you"]:
        print("Server said hello.")
    return data["your_token"]


def submit_emergency(
    client: httpx.Client,
    token: str,
    latitude: float,
    longitude: float,
    notes: str = "",
) -> dict:
    response = client.post(
        f"{API}/locations/submit",
        json={
            "token": token,
            "emergency": True,
            "location": {
                "degrees_latitude": latitude,
                "degrees_longitude": longitude,
                "meters_elevation": 0.0,
            },
            "notes": notes,
        },
    )
    response.raise_for_status()
    return response.json()


def run(client: httpx.Client, args: argparse.Namespace) -> dict:
    token = introduce(client, args.registration_key)
    result = submit_emergency(client, token, args.lat, args.lon, args.notes)
    print(f"RESPONSE={result}")
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Submit a demo emergency report")
    parser.add_argument("--server", default=DEFAULT_SERVER, help="Server base URL")
    parser.add_argument("--registration-key", default=None, help="Hex key for closed registration")
    parser.add_argument("--lat", type=float, default=30.0832)
    parser.add_argument("--lon", type=float, default=-81.4028)
    parser.add_argument("--notes", default="")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    try:
        with httpx.Client(base_url=args.server, timeout=10.0) as client:
            run(client, args)
    except httpx.HTTPStatusError as e:
        print(f"❌ Server rejected the request: {e.response.status_code} {e.response.text}")
        sys.exit(1)
    except httpx.HTTPError as e:
        print(f"❌ Could not reach {args.server}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
