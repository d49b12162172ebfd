from typing import Optional, Any, Dict
from django.contrib.auth import get_user_model
from pharmacy.models import AuditEvent

User = get_user_model()

def log_action(*, user=None, actor: str = '', action: str, object_type: Optional[str] = None,
               object_id: Optional[Any] = None, detail: Optional[Dict[str, Any]] = None) -> AuditEvent:
    return AuditEvent.objects.create(
        user=user if isinstance(user, User) and user.pk else None,
        actor=actor or (str(user.pk) if isinstance(user, User) and user.pk else ''),
        action=action,
        object_type=object_type,
        object_id=str(object_id) if object_id is not None else None,
        detail=detail or {},
    )
