# routes_allocate.py
from fastapi import APIRouter, Depends, Form

from database import get_guardian
from ip_allocator import CIDRGuardian
from utils import parse_cidr

router = APIRouter(prefix="/allocate", tags=["Allocate"])


@router.post("/cidr")
def allocate_cidr(
    prefix: int = Form(...),
    description: str = Form(""),
    guardian: CIDRGuardian = Depends(get_guardian),
):
    cidr = guardian.allocate_cidr(prefix, description)
    return {"msg": "Allocated", "cidr": cidr}


@router.post("/ip")
def allocate_ip(
    ip: str = Form(...),
    description: str = Form(""),
    guardian: CIDRGuardian = Depends(get_guardian),
):
    guardian.allocate_ip(ip, description)
    return {"msg": "Allocated", "ip": ip}


@router.post("/next")
def allocate_next_ip(description: str = Form(""), guardian: CIDRGuardian = Depends(get_guardian)):
    ip = guardian.get_next_available_ip(description)
    return {"msg": "Allocated", "ip": ip}


@router.post("/release/cidr")
def release_cidr(cidr: str = Form(...), guardian: CIDRGuardian = Depends(get_guardian)):
    guardian.release_cidr(cidr)
    return {"msg": "Released", "cidr": str(parse_cidr(cidr))}


@router.post("/release/ip")
def release_ip(ip: str = Form(...), guardian: CIDRGuardian = Depends(get_guardian)):
    guardian.release_ip(ip)
    return {"msg": "Released", "ip": ip}
