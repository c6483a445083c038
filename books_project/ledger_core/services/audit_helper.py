from typing import Optional

from ..models import AuditLog, Company


def log_action(
    *,
    action: str,
    instance=None,
    actor_id: Optional[str] = None,
    company: Optional[Company] = None,
    object_type: Optional[str] = None,
    object_id: Optional[str] = None,
    changes: dict | None = None,
):
    """
    Central audit logger.
    Safe to call multiple times (caller ensures idempotency).
    """

    if not company:
        company = getattr(instance, "company", None)

    return AuditLog.objects.create(
        company=company,
        actor_id=actor_id,
        action=action,
        object_type=object_type or instance.__class__.__name__,
        object_id=str(object_id if object_id is not None else instance.pk),
        changes=changes,
    )
