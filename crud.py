# crud.py
from sqlalchemy.orm import Session
from models import AvailableIP, AllocatedIP
from utils import ip_sort_key

# ---------- Available ----------
def get_available(db: Session, ip: str) -> AvailableIP | None:
    return db.query(AvailableIP).filter(AvailableIP.ip == ip).first()

def list_available(db: Session) -> list[str]:
    return [row.ip for row in db.query(AvailableIP.ip).order_by(AvailableIP.ip_value)]

def count_available(db: Session) -> int:
    return db.query(AvailableIP).count()

def get_or_create_available(db: Session, ip: str) -> AvailableIP:
    row = get_available(db, ip)
    if row:
        return row
    row = AvailableIP(ip=ip, ip_value=ip_sort_key(ip))
    db.add(row)
    db.flush()
    return row

def delete_available(db: Session, ip: str) -> int:
    """Returns the number of rows removed (0 or 1)."""
    return db.query(AvailableIP).filter(AvailableIP.ip == ip).delete(synchronize_session=False)


# ---------- Allocated ----------
def get_allocated(db: Session, ip: str) -> AllocatedIP | None:
    return db.query(AllocatedIP).filter(AllocatedIP.ip == ip).first()

def list_allocated(db: Session) -> dict[str, str]:
    rows = db.query(AllocatedIP.ip, AllocatedIP.description).order_by(AllocatedIP.ip_value)
    return {row.ip: row.description for row in rows}

def count_allocated(db: Session) -> int:
    return db.query(AllocatedIP).count()

def create_allocated(db: Session, ip: str, description: str) -> AllocatedIP:
    row = AllocatedIP(ip=ip, ip_value=ip_sort_key(ip), description=description)
    db.add(row)
    db.flush()
    return row

def delete_allocated(db: Session, ip: str) -> int:
    return db.query(AllocatedIP).filter(AllocatedIP.ip == ip).delete(synchronize_session=False)
