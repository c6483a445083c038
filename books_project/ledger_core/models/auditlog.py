from django.db import models

from ..managers import TenantManager
from .company import Company


# ---------- Audit / Event log ----------
class AuditLog(models.Model):  # Accountability and traceability for ledger changes
    # Associate log entry with a tenant
    company = models.ForeignKey(
        Company,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
    )
    # Who performed the action (opaque actor id; None for background jobs)
    actor_id = models.CharField(max_length=150, null=True, blank=True)
    # Type of event being logged: post, unpost, mark_paid, import, report ...
    action = models.CharField(max_length=50)
    # What kind of object was affected (e.g. "SalesInvoice", "Company")
    object_type = models.CharField(max_length=100)
    # The primary key (or identifier) of the object
    object_id = models.CharField(max_length=100)
    # Details of what changed, in JSON format
    changes = models.JSONField(null=True, blank=True)
    # Timestamp when the event was logged
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        # Filter logs quickly
        indexes = [
            models.Index(fields=["company", "actor_id"]),
            models.Index(fields=["company", "created_at"]),
        ]

    def __str__(self):
        time = self.created_at
        return f"[{time:%Y-%m-%d %H:%M}] {self.actor_id} {self.action} {self.object_type}({self.object_id})"
