"""
Expired-session cleanup. Schedule it from cron, e.g. hourly:

  0 * * * * cd /path/to/erp && .venv/bin/python -m app.session_cleanup

  python -m app.session_cleanup --dry-run   # report only
"""

import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from app.core.database import SessionLocal
from app.core.timeutils import utcnow
from app.services.sessions import expired_sessions, purge_expired

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Delete sessions whose access and refresh tokens have both expired."
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Count expired sessions without deleting them",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )

    db = SessionLocal()
    try:
        if args.dry_run:
            pending = len(expired_sessions(db, utcnow()))
            logger.info("Session cleanup (dry run): sessions_expired=%s", pending)
        else:
            deleted = purge_expired(db)
            logger.info("Session cleanup completed: sessions_deleted=%s", deleted)
        return 0
    except SQLAlchemyError as e:
        logger.exception("Session cleanup failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
