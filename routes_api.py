from fastapi import APIRouter, Depends, Form
from fastapi.responses import PlainTextResponse
from typing import Dict, List

from database import get_guardian
from ip_allocator import CIDRGuardian
from schemas import StatusSnapshot
from utils import parse_cidr

router = APIRouter(prefix="/api", tags=["API"])


@router.get("/cidrs", response_model=Dict[str, str])
def list_managed_cidrs(guardian: CIDRGuardian = Depends(get_guardian)):
    return guardian.get_managed_cidrs()


@router.post("/cidrs/add")
def add_cidr(
    cidr: str = Form(...),
    description: str = Form(""),
    guardian: CIDRGuardian = Depends(get_guardian),
):
    guardian.add_cidr(cidr, description)
    return {"msg": "CIDR added", "cidr": str(parse_cidr(cidr))}


@router.post("/cidrs/remove")
def remove_cidr(cidr: str = Form(...), guardian: CIDRGuardian = Depends(get_guardian)):
    guardian.remove_cidr(cidr)
    return {"msg": "CIDR removed", "cidr": str(parse_cidr(cidr))}


@router.post("/cidrs/expand")
def expand_pool(
    cidr: str = Form(...),
    description: str = Form("expanded pool"),
    guardian: CIDRGuardian = Depends(get_guardian),
):
    guardian.expand_pool(cidr, description)
    return {"msg": "Pool expanded", "cidr": str(parse_cidr(cidr))}


@router.get("/cidrs/available", response_model=List[str])
def get_available_cidrs(guardian: CIDRGuardian = Depends(get_guardian)):
    """
    Available addresses grouped by /24. A listed block is not necessarily
    free as a whole.
    """
    return guardian.get_available_cidrs()


@router.get("/cidrs/used", response_model=Dict[str, str])
def get_used_cidrs(guardian: CIDRGuardian = Depends(get_guardian)):
    return guardian.get_used_cidrs()


@router.get("/status", response_model=StatusSnapshot)
def status(guardian: CIDRGuardian = Depends(get_guardian)):
    return guardian.snapshot()


@router.get("/report", response_class=PlainTextResponse)
def report(guardian: CIDRGuardian = Depends(get_guardian)):
    return guardian.report()
