"""User bootstrap service.

Provides race-safe creation of the users row on first authenticated request.
"""

import logging

from sqlalchemy.orm import Session

from memorial.auth.middleware import Viewer
from memorial.db.dialect import insert_if_absent
from memorial.db.models import User
from memorial.db.session import transaction

logger = logging.getLogger(__name__)


def ensure_user(db: Session, viewer: Viewer) -> bool:
    """Ensure a users row exists for the viewer.

    Idempotent and race-safe: concurrent first requests converge on one row
    through INSERT ... ON CONFLICT DO NOTHING.

    Args:
        db: Database session.
        viewer: The authenticated viewer (id and e-mail from the token).

    Returns:
        True if the row was created by this call.
    """
    with transaction(db):
        created = insert_if_absent(
            db,
            User,
            {"id": viewer.user_id, "email": viewer.email},
            ["id"],
        )

    if created:
        logger.info("Created user %s", viewer.user_id)
    return created
