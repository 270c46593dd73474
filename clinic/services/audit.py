from typing import Any, Dict, Optional

from clinic.models import AuditEvent


def log_action(*, user_id=None, action: str, object_type: Optional[str] = None,
               object_id=None, detail: Optional[Dict[str, Any]] = None) -> AuditEvent:
    return AuditEvent.objects.create(
        user_id=user_id,
        action=action,
        object_type=object_type,
        object_id=str(object_id) if object_id is not None else None,
        detail=detail or {},
    )
