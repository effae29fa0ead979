from __future__ import annotations
from fastapi import APIRouter, HTTPException, Depends

from .models import DeviceStatus, ErrorResponse, HealthResponse
from .service import PollService
from .catalog import load_config
from .config import DEVICE_HOST, MODE
from .errors import ConfigurationError, DeviceError


router = APIRouter()
svc: PollService | None = None


def get_service() -> PollService:
    global svc
    if svc is None:
        svc = PollService(host=DEVICE_HOST, cfg=load_config())
    return svc


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns service health status and the device backend (snmp or sim)",
    tags=["Health"]
)
def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok", mode=MODE)


@router.get(
    "/status",
    response_model=DeviceStatus,
    summary="Device status",
    description="Identifies the controller and reads every OID of its model once",
    responses={
        200: {"description": "Device answered"},
        500: {"model": ErrorResponse, "description": "Device table does not match the device"},
        502: {"model": ErrorResponse, "description": "Device could not be queried"},
    },
    tags=["Device"]
)
def device_status(service: PollService = Depends(get_service)) -> DeviceStatus:
    """Query the device once."""
    try:
        return service.device_status()
    except DeviceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
