"""One-shot auto-mark sweep, e.g. from cron when the web app's scheduler is off.

    python scripts/run_auto_mark.py                 # today
    python scripts/run_auto_mark.py --date 2024-03-01
    python scripts/run_auto_mark.py --from 2024-03-01 --to 2024-03-07
"""

from __future__ import annotations

import argparse
import importlib
import json
import sys
from datetime import date

from dotenv import load_dotenv

from hostel_attendance.common.datetime_utils import parse_iso_date
from hostel_attendance.common.logging_setup import configure_logging
from hostel_attendance.config import get_settings_module
from hostel_attendance.container import build_container


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the attendance auto-mark sweep")
    parser.add_argument("--date", type=parse_iso_date, default=None)
    parser.add_argument("--from", dest="start", type=parse_iso_date, default=None)
    parser.add_argument("--to", dest="end", type=parse_iso_date, default=None)
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(
        db_config=settings.DB_CONFIG,
        lock_timeout=float(getattr(settings, "LOCK_TIMEOUT_SECONDS", 10)),
    )

    if args.start or args.end:
        if not (args.start and args.end):
            parser.error("--from and --to must be given together")
        result = container.automark_service.run_for_range(args.start, args.end)
        print(json.dumps(result.to_dict(), indent=2))
        return 1 if result.failed_dates else 0

    summary = container.automark_service.run_for_date(args.date or date.today())
    print(json.dumps(summary.to_dict(), indent=2))
    return 1 if summary.failed else 0


if __name__ == "__main__":
    sys.exit(main())
