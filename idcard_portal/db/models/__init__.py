# Import all models so SQLAlchemy metadata is fully populated on startup.
from idcard_portal.db.models.local_record import LocalRecord


__all__ = [
    "LocalRecord",
]
