import logging
from typing import Any, Dict, Optional

from django.contrib.auth import get_user_model
from django.db import DatabaseError

from core.models import AuditEvent

User = get_user_model()
logger = logging.getLogger(__name__)


def log_action(
    *,
    user: Optional[User],
    action: str,
    object_type: Optional[str] = None,
    object_id: Optional[int] = None,
    detail: Optional[Dict[str, Any]] = None,
) -> Optional[AuditEvent]:
    """Append an audit record; ``user`` is None for anonymous attempts.

    A failed write is logged and swallowed so auditing never turns a
    successful request into an error.
    """
    actor = user if isinstance(user, User) and user.pk else None
    try:
        return AuditEvent.objects.create(
            user=actor,
            action=action,
            object_type=object_type,
            object_id=object_id,
            detail=detail or {},
        )
    except DatabaseError:
        logger.warning('audit write failed: action=%s object=%s#%s', action, object_type, object_id, exc_info=True)
        return None
