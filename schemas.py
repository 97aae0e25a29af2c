# schemas.py
from ipaddress import IPv4Network
from typing import Dict, List
from pydantic import BaseModel, ConfigDict

BLOCK_SEPARATOR = " - "


class ManagedCIDR(BaseModel):
    cidr: str
    description: str = ""
    network: IPv4Network
    model_config = ConfigDict(frozen=True)


class UsedCIDR(BaseModel):
    cidr: str
    description: str

    @classmethod
    def parse(cls, record: str) -> "UsedCIDR | None":
        """Reads a "<cidr> - <description>" allocation record; None for plain addresses."""
        if BLOCK_SEPARATOR not in record:
            return None
        cidr, description = record.split(BLOCK_SEPARATOR, 1)
        return cls(cidr=cidr, description=description)

    def record(self) -> str:
        return f"{self.cidr}{BLOCK_SEPARATOR}{self.description}"


class StatusSnapshot(BaseModel):
    managed_cidrs: Dict[str, str]
    used_cidrs: Dict[str, str]
    available_count: int
    allocated_count: int
    available_cidrs: List[str]
