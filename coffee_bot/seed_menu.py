"""
Seed the menu_rows table with the default coffee menu.

Run once against an empty database:

    python -m coffee_bot.seed_menu

or set SEED_MENU=true to seed at application startup.
"""

import logging

from sqlalchemy.orm import Session

from .db import SessionLocal, init_db
from .menu import DEFAULT_MENU
from .models import MenuRow

logger = logging.getLogger(__name__)


def seed_default_menu(db: Session) -> int:
    """
    Insert the default menu rows if menu_rows is empty.

    Returns:
        Number of rows inserted (0 when the table already has rows)
    """
    existing = db.query(MenuRow).count()
    if existing > 0:
        logger.info("Menu already has %d rows. Not seeding again.", existing)
        return 0

    rows = [
        MenuRow(item=item.title(), size=size.title(), price=f"${price:.2f}")
        for item, sizes in DEFAULT_MENU.items()
        for size, price in sizes.items()
    ]
    db.add_all(rows)
    db.commit()
    logger.info("Seeded %d menu rows", len(rows))
    return len(rows)


if __name__ == "__main__":
    from .logging_config import setup_logging

    setup_logging()
    init_db()
    session = SessionLocal()
    try:
        seed_default_menu(session)
    finally:
        session.close()
