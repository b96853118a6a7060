"""
Seed data generator -- creates the allow-listed location master tables for
local development.

Creates, in every schema of the allow-list (``config/allow_list.yml``):
  - location_master_raw_tb  (~500 rows)
  - location_master_vw      (active locations only)

Run:  python -m pipelines.seed.seed_locations
"""
from __future__ import annotations

import random
from datetime import date, datetime, timedelta

from faker import Faker
from sqlalchemy import create_engine, text

from src.core.config import get_settings
from src.governance.allow_list import AllowList, load_allow_list

fake = Faker()
Faker.seed(42)
random.seed(42)

# ── Tunables ─────────────────────────────────────────────
NUM_LOCATIONS = 500
LOCATION_TYPES = ["warehouse", "store", "depot", "office"]
ACTIVE_RATIO = 0.8

LOAD_START = datetime(2024, 1, 1)
LOAD_DAYS = 365

_DDL = """
CREATE TABLE IF NOT EXISTS {schema}.location_master_raw_tb (
    location_id      INTEGER PRIMARY KEY,
    location_code    VARCHAR(20) NOT NULL,
    location_name    TEXT NOT NULL,
    location_type    VARCHAR(20) NOT NULL,
    country_code     VARCHAR(2) NOT NULL,
    latitude         DOUBLE PRECISION,
    longitude        DOUBLE PRECISION,
    is_active        BOOLEAN NOT NULL,
    opened_on        DATE,
    load_timestamp   TIMESTAMP NOT NULL
)
"""

_VIEW = """
CREATE OR REPLACE VIEW {schema}.location_master_vw AS
SELECT location_id, location_code, location_name, location_type,
       country_code, opened_on, load_timestamp
FROM {schema}.location_master_raw_tb
WHERE is_active
"""


def _rand_load_ts() -> datetime:
    return LOAD_START + timedelta(
        days=random.randint(0, LOAD_DAYS),
        hours=random.randint(0, 23),
        minutes=random.randint(0, 59),
        seconds=random.randint(0, 59),
    )


# ── Targets ──────────────────────────────────────────────

def seed_schemas(allow_list: AllowList | None = None) -> list[str]:
    """Schemas that own an allow-listed table, sorted."""
    if allow_list is None:
        allow_list = load_allow_list()
    return sorted({t.schema for t in allow_list.tables})


# ── Generators ───────────────────────────────────────────

def gen_locations(n: int = NUM_LOCATIONS) -> list[dict]:
    rows = []
    for lid in range(1, n + 1):
        kind = random.choice(LOCATION_TYPES)
        rows.append({
            "location_id": lid,
            "location_code": f"LOC-{lid:05d}",
            "location_name": f"{fake.city()} {kind.title()}",
            "location_type": kind,
            "country_code": fake.country_code(),
            "latitude": float(fake.latitude()),
            "longitude": float(fake.longitude()),
            "is_active": random.random() < ACTIVE_RATIO,
            "opened_on": fake.date_between(start_date=date(2005, 1, 1), end_date=date(2023, 12, 31)),
            "load_timestamp": _rand_load_ts(),
        })
    return rows


# ── Bulk insert helper ───────────────────────────────────

def _bulk_insert(conn, table: str, rows: list[dict], batch_size: int = 500):
    """Insert rows into *table* in batches using executemany-style VALUES."""
    if not rows:
        return
    cols = list(rows[0].keys())
    sql = text(
        f"INSERT INTO {table} ({', '.join(cols)}) "
        f"VALUES ({', '.join(f':{c}' for c in cols)}) ON CONFLICT DO NOTHING"
    )
    for i in range(0, len(rows), batch_size):
        conn.execute(sql, rows[i : i + batch_size])
    print(f"  ✓ {table}: {len(rows):,} rows")


# ── Main ─────────────────────────────────────────────────

def main():
    print("═══ Location Seed Generator ═══")
    engine = create_engine(get_settings().database_url, echo=False)
    schemas = seed_schemas()
    rows = gen_locations()

    with engine.begin() as conn:
        for schema in schemas:
            conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {schema}"))
            conn.execute(text(_DDL.format(schema=schema)))
            conn.execute(text(f"TRUNCATE TABLE {schema}.location_master_raw_tb"))
            _bulk_insert(conn, f"{schema}.location_master_raw_tb", rows)
            conn.execute(text(_VIEW.format(schema=schema)))

    print(f"\nDone -- seeded {len(rows):,} locations into {', '.join(schemas)}.")


if __name__ == "__main__":
    main()
