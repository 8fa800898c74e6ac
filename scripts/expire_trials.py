from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from brigade.core.database import SessionLocal  # noqa: E402
from brigade.services.restaurants import expire_trials  # noqa: E402


def main() -> int:
    db = SessionLocal()
    try:
        expired = expire_trials(db)
        db.commit()
        for restaurant in expired:
            print(f"suspended slug={restaurant.slug} trial_end_date={restaurant.trial_end_date}")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
    print(f"{len(expired)} trial(s) expired.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
