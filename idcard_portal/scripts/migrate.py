from __future__ import annotations

import os
import time
import subprocess
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import OperationalError

from idcard_portal.core.config import settings


def wait_for_db(engine, timeout_s: int = 60) -> None:
    """Wait until the database is accepting connections."""
    start = time.time()
    delay = 1.0

    while True:
        try:
            with engine.begin() as conn:
                conn.execute(text("SELECT 1"))
            return
        except OperationalError:
            if time.time() - start > timeout_s:
                raise
            time.sleep(delay)
            delay = min(delay * 1.5, 5.0)


def run(cmd: list[str]) -> int:
    p = subprocess.run(cmd, check=False)
    return p.returncode


def main() -> int:
    dsn = os.getenv("DATABASE_URL") or settings.DATABASE_URL
    engine = create_engine(dsn, future=True, pool_pre_ping=True)

    # Wait for DB readiness (important in docker-compose)
    wait_for_db(engine, timeout_s=int(os.getenv("DB_WAIT_TIMEOUT", "90")))

    tables = set(inspect(engine).get_table_names())

    if "alembic_version" not in tables and "local_records" in tables:
        # Existing schema without alembic tracking: stamp head
        return run(["alembic", "stamp", "head"])
    return run(["alembic", "upgrade", "head"])


if __name__ == "__main__":
    raise SystemExit(main())
