from __future__ import annotations
import argparse
import json

from ebes.core.config import settings
from ebes.core.logging import configure_logging
from ebes.db.database import SessionLocal
from ebes.db.init_db import init_db
from ebes.services.activity import DateRange
from ebes.services.admin import leaderboards
from ebes.services.settings_service import get_setting


def main() -> None:
    parser = argparse.ArgumentParser(description="Print EBES leaderboards per role.")
    parser.add_argument("--start", help="first day, YYYY-MM-DD")
    parser.add_argument("--end", help="last day, YYYY-MM-DD")
    parser.add_argument("--size", type=int, default=5)
    args = parser.parse_args()

    configure_logging(settings.log_level)
    init_db()
    db = SessionLocal()
    try:
        cfg = get_setting(db, "scoring")
        result = leaderboards(db, cfg, DateRange.from_params(args.start, args.end), args.size)
        print(json.dumps(result, indent=2, default=str))
    finally:
        db.close()


if __name__ == "__main__":
    main()
