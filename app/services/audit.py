"""
Audit Trail

Account and post lifecycle actions are written to the audit_logs table:
user_created, user_login, user_logout, user_updated, post_created and
post_deleted.

Entries are attributed to the acting user's id. Users can change their
email, so the email stored next to it is only a snapshot taken when the
action happened.
"""

import json

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import AuditLog, User


def _encode_details(details: dict | str | None) -> str | None:
    if not details:
        return None
    if isinstance(details, dict):
        return json.dumps(details, sort_keys=True)
    return str(details)


async def log_action(
    db: AsyncSession,
    action: str,
    actor: User,
    details: dict | str | None = None,
) -> AuditLog:
    """
    Add an audit entry for `actor` to the session without committing.

    The caller commits it together with the write it describes, so an
    action that fails leaves no entry behind.

    Example:
        await log_action(db, "post_deleted", user, {"post_id": post.id})
        await db.commit()
    """
    entry = AuditLog(
        action=action,
        user_id=actor.id,
        user_email=actor.email,
        details=_encode_details(details),
    )
    db.add(entry)
    return entry


async def actions_for(db: AsyncSession, user_id: str) -> list[AuditLog]:
    """A user's audit entries, oldest first."""
    result = await db.execute(
        select(AuditLog)
        .filter(AuditLog.user_id == user_id)
        .order_by(AuditLog.id)
    )
    return list(result.scalars().all())
