import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from idcard_portal.core.config import settings

POOL_SIZE = int(os.environ.get('DB_POOL_SIZE','10'))
MAX_OVERFLOW = int(os.environ.get('DB_MAX_OVERFLOW','20'))


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # the store is shared by the request threads of one process
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_recycle": 3600,
        "pool_size": POOL_SIZE,
        "max_overflow": MAX_OVERFLOW,
        "pool_timeout": 30,
    }


engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
