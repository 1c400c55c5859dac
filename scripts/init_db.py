from __future__ import annotations

import argparse
import importlib
from pathlib import Path

from dotenv import load_dotenv

from hostel_attendance.config import get_settings_module
from hostel_attendance.database.bootstrap import apply_schema, apply_seed_sql, list_tables

DATABASE_DIR = Path(__file__).resolve().parents[1] / "database"


def main() -> None:
    parser = argparse.ArgumentParser(description="Apply database/schema.sql (and optionally seed.sql)")
    parser.add_argument("--seed", action="store_true", help="also load database/seed.sql")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
    if args.seed:
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")

    tables = list_tables(db_config)
    print(
        "OK: Applied schema.sql -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(tables={len(tables)})"
    )


if __name__ == "__main__":
    main()
