from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

import config
from database import get_guardian
from errors import (
    AddressAlreadyAllocated, AddressUnavailable, Cancelled, DuplicateCIDR, GuardianError,
    InvalidAddress, InvalidCIDR, InvalidPrefix, NoAlignedBlock, NoAvailableAddress, NoCapacity,
    NotAllocated, NotManaged, StorageFailure,
)

from routes_api import router as api_router
from routes_allocate import router as allocate_router

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidCIDR: 400,
    InvalidAddress: 400,
    InvalidPrefix: 400,
    NotManaged: 404,
    NotAllocated: 404,
    DuplicateCIDR: 409,
    AddressUnavailable: 409,
    AddressAlreadyAllocated: 409,
    NoCapacity: 409,
    NoAlignedBlock: 409,
    NoAvailableAddress: 409,
    Cancelled: 499,
    StorageFailure: 503,
}

app = FastAPI(title="CIDR Guardian")

app.include_router(api_router)
app.include_router(allocate_router)


def status_for(exc: GuardianError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


@app.exception_handler(GuardianError)
async def guardian_error_handler(request: Request, exc: GuardianError):
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    content = {"detail": str(exc), "error": type(exc).__name__}
    if exc.rollback is not None:
        content["rollback"] = {
            "operation": exc.rollback.operation,
            "attempted": exc.rollback.attempted,
            "clean": exc.rollback.clean,
            "failures": [f"{ip}: {err}" for ip, err in exc.rollback.failures],
        }
    return JSONResponse(status_code=status_code, content=content)


@app.on_event("startup")
def bootstrap_guardian():
    config.configure_logging()
    guardian = get_guardian()
    logger.info("CIDR Guardian ready with %d managed CIDR(s)", len(guardian.get_managed_cidrs()))
