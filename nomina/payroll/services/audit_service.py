from payroll.models import AuditLog


def log_action(*, actor_id, action: str, object_type: str, object_id, before=None, after=None) -> AuditLog:
    return AuditLog.objects.create(
        actor_id=actor_id, action=action, object_type=object_type, object_id=str(object_id),
        before=before, after=after,
    )
