from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from sqlalchemy.orm import Session  # noqa: E402

from brigade.core.database import SessionLocal  # noqa: E402
from brigade.models.restaurant import Restaurant  # noqa: E402
from brigade.models.user import User  # noqa: E402
from brigade.utils.slug import slugify, unique_slug  # noqa: E402


def slug_exists(db: Session, slug: str, restaurant_id: int) -> bool:
    return (
        db.query(Restaurant.id)
        .filter(Restaurant.slug == slug, Restaurant.id != restaurant_id)
        .first()
        is not None
    )


def migrate(db: Session) -> list[tuple[int, str]]:
    """Give every restaurant without a usable slug one derived from its name,
    and point its members' organization at it."""
    changed: list[tuple[int, str]] = []
    for restaurant in db.query(Restaurant).order_by(Restaurant.id.asc()).all():
        current = restaurant.slug or ""
        if current and current == slugify(current):
            continue

        base = slugify(restaurant.name or "") or "restaurant"
        new_slug = unique_slug(base, lambda candidate: slug_exists(db, candidate, restaurant.id))
        if current:
            db.query(User).filter(User.organization == current).update(
                {User.organization: new_slug}, synchronize_session=False
            )
        restaurant.slug = new_slug
        db.flush()
        changed.append((restaurant.id, new_slug))
    return changed


def main() -> int:
    db = SessionLocal()
    try:
        changed = migrate(db)
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    for restaurant_id, slug in changed:
        print(f"restaurant_id={restaurant_id} slug={slug}")
    print(f"Migration finished: {len(changed)} restaurant(s) updated.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
