from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from idcard_portal.core.errors import StoreUnavailableError
from idcard_portal.db.models.local_record import LocalRecord

logger = logging.getLogger("idcard_portal.storage.sql")


class SqlStore:
    """Persistent store: one row per key in ``local_records``."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, key: str) -> str | None:
        db: Session = self._session_factory()
        try:
            row = db.get(LocalRecord, key)
            return row.value if row is not None else None
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(str(exc)) from exc
        finally:
            db.close()

    def set(self, key: str, value: str) -> None:
        db: Session = self._session_factory()
        try:
            row = db.get(LocalRecord, key)
            if row is None:
                db.add(LocalRecord(key=key, value=str(value), updated_at=datetime.utcnow()))
            else:
                row.value = str(value)
                row.updated_at = datetime.utcnow()
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("Store write failed for %s: %s", key, exc)
            raise StoreUnavailableError(str(exc)) from exc
        finally:
            db.close()

    def delete(self, key: str) -> None:
        db: Session = self._session_factory()
        try:
            db.query(LocalRecord).filter(LocalRecord.key == key).delete(synchronize_session=False)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("Store delete failed for %s: %s", key, exc)
            raise StoreUnavailableError(str(exc)) from exc
        finally:
            db.close()
