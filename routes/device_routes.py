"""
Device RPC endpoints.

One POST endpoint per RPC; the JSON body mirrors the RPC argument message and
carries the caller's hex token. All logic lives in DeviceService; these
handlers only inject dependencies.

POST /api/v1/introduce          IntroduceMyself (unauthenticated)
POST /api/v1/locations/submit   SubmitLocation
POST /api/v1/locations/list     ListLocations
POST /api/v1/locations/purge    PurgeLocations
POST /api/v1/storage/info       GetStorageInfo
POST /api/v1/tokens/list        ListTokens
POST /api/v1/tokens/revoke      RevokeToken
POST /api/v1/excommunicate      RequestExcommunication
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from dependencies import get_device_service, get_remote_addr
from schemas.dto.requests.device import (
    IntroduceMyselfRequest,
    ListLocationsRequest,
    RevokeTokenRequest,
    SubmitLocationRequest,
    TokenRequest,
)
from schemas.dto.responses.common import ERROR_RESPONSES
from schemas.dto.responses.device import (
    ActionResponse,
    IntroduceMyselfResponse,
    ListLocationsResponse,
    ListTokensResponse,
    StorageInfoResponse,
    SubmitLocationResponse,
)
from services.device_service import DeviceService

router = APIRouter(prefix="/api/v1", tags=["device"], responses=ERROR_RESPONSES)


@router.post("/introduce", response_model=IntroduceMyselfResponse)
async def introduce_myself(
    body: IntroduceMyselfRequest,
    service: DeviceService = Depends(get_device_service),
    remote_addr: Optional[str] = Depends(get_remote_addr),
) -> IntroduceMyselfResponse:
    return await service.introduce_myself(body, remote_addr)


@router.post("/locations/submit", response_model=SubmitLocationResponse)
async def submit_location(
    body: SubmitLocationRequest,
    service: DeviceService = Depends(get_device_service),
    remote_addr: Optional[str] = Depends(get_remote_addr),
) -> SubmitLocationResponse:
    return await service.submit_location(body, remote_addr)


@router.post("/locations/list", response_model=ListLocationsResponse)
async def list_locations(
    body: ListLocationsRequest,
    service: DeviceService = Depends(get_device_service),
) -> ListLocationsResponse:
    return await service.list_locations(body)


@router.post("/locations/purge", response_model=ActionResponse)
async def purge_locations(
    body: TokenRequest,
    service: DeviceService = Depends(get_device_service),
) -> ActionResponse:
    return await service.purge_locations(body)


@router.post("/storage/info", response_model=StorageInfoResponse)
async def get_storage_info(
    body: TokenRequest,
    service: DeviceService = Depends(get_device_service),
) -> StorageInfoResponse:
    return await service.get_storage_info(body)


@router.post("/tokens/list", response_model=ListTokensResponse)
async def list_tokens(
    body: TokenRequest,
    service: DeviceService = Depends(get_device_service),
) -> ListTokensResponse:
    return await service.list_tokens(body)


@router.post("/tokens/revoke", response_model=ActionResponse)
async def revoke_token(
    body: RevokeTokenRequest,
    service: DeviceService = Depends(get_device_service),
) -> ActionResponse:
    return await service.revoke_token(body)


@router.post("/excommunicate", response_model=ActionResponse)
async def request_excommunication(
    body: TokenRequest,
    service: DeviceService = Depends(get_device_service),
) -> ActionResponse:
    return await service.request_excommunication(body)
