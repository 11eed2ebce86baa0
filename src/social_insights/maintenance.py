"""Terminology rename on the interaction log.

Standalone write path; the analytic reports never touch user_interactions.
"""
import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from .models import UserInteraction


logger = logging.getLogger(__name__)


def rename_engagement_type(db: Session, old: str = "Like", new: str = "Heart") -> int:
    """Rewrite every ``old`` engagement type to ``new`` in one UPDATE.

    Returns the number of rows changed. Rolls back on failure.
    """
    if not new:
        raise ValueError("Replacement engagement type must not be empty")

    try:
        result = db.execute(
            update(UserInteraction)
            .where(UserInteraction.engagement_type == old)
            .values(engagement_type=new)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Renamed engagement type '{old}' -> '{new}' on {result.rowcount} row(s)")
    return result.rowcount
