# models.py
from sqlalchemy import BigInteger, Column, DateTime, String, Text
from datetime import datetime
from database import Base


class AvailableIP(Base):
    __tablename__ = "ip_available"

    ip = Column(String(15), primary_key=True)
    ip_value = Column(BigInteger, index=True, nullable=False)  # 32-bit numeric form, for ordering
    created_at = Column(DateTime, default=datetime.utcnow)


class AllocatedIP(Base):
    __tablename__ = "ip_allocated"

    ip = Column(String(15), primary_key=True)
    ip_value = Column(BigInteger, index=True, nullable=False)
    # "<cidr> - <description>" for block allocations; must round-trip byte for byte.
    description = Column(Text, nullable=False, default="")
    allocated_at = Column(DateTime, default=datetime.utcnow)
