"""Command-line entry point for preparing the database.

Creates the tables and the administration access code. With --demo, also
creates one teacher code and one parent code per class so the service can be
tried out right away. Running it again changes nothing that already exists.

Usage:
    python main.py [--demo]
"""

import logging
import sys
from typing import List, Tuple

from config import (
    ADMIN_CODE,
    ADMIN_DISPLAY_NAME,
    DATABASE_URL,
    DEMO_PARENT_CODES,
    DEMO_TEACHER_CODES,
)
from core.database import SessionLocal, init_db
from core.exceptions import DuplicateCodeError
from core.logging_config import setup_logging
from schemas.access_code import Profile
from utils.access_code_manager import AccessCodeManager

setup_logging()
logger = logging.getLogger(__name__)


def print_banner() -> None:
    """Print program banner and description."""
    print("=" * 70)
    print("  School Scheduler - database setup")
    print("=" * 70)
    print(f"  Database: {DATABASE_URL}")
    print("=" * 70)
    print()


def seed_codes(
    manager: AccessCodeManager, profile: Profile, codes: List[Tuple[str, str, str]]
) -> int:
    """Create the given codes, skipping those that already exist.

    Returns:
        Number of codes created.
    """
    created = 0
    for code, display_name, class_name in codes:
        try:
            manager.create_code(code, profile.value, display_name, class_name)
            created += 1
        except DuplicateCodeError:
            logger.info("Access code %s already exists, skipping", code)
    return created


def main() -> None:
    """Main entry point."""
    with_demo = "--demo" in sys.argv[1:]

    print_banner()
    init_db()

    with SessionLocal() as db:
        manager = AccessCodeManager(db)
        created = seed_codes(
            manager, Profile.ADMIN, [(ADMIN_CODE, ADMIN_DISPLAY_NAME, "")]
        )
        if with_demo:
            created += seed_codes(manager, Profile.TEACHER, DEMO_TEACHER_CODES)
            created += seed_codes(manager, Profile.PARENT, DEMO_PARENT_CODES)

    print(f"✅ {created} access code(s) created.")
    print(f"   Log in with '{ADMIN_CODE}' to manage codes.")


if __name__ == "__main__":
    main()
