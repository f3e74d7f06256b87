import uuid

from django.db import models


class IntegrationImportBatch(models.Model):
    """One attempt at an idempotent write (goods receipt, stock import).

    A COMPLETED batch stores the original response, which is replayed when
    the same ``Idempotency-Key`` arrives again for the same import type.
    """

    class Status(models.TextChoices):
        STARTED = "started", "started"
        COMPLETED = "completed", "completed"
        FAILED = "failed", "failed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    source = models.CharField(max_length=64)
    import_type = models.CharField(max_length=64)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.STARTED)
    idempotency_key = models.CharField(max_length=255, blank=True, null=True)
    payload = models.JSONField(default=dict, blank=True)
    result = models.JSONField(default=dict, blank=True)
    started_at = models.DateTimeField(auto_now_add=True)
    finished_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "integration_import_batch"
        ordering = ["-started_at"]
        indexes = [
            models.Index(fields=["import_type", "idempotency_key"], name="idx_integration_batch_key"),
        ]

    def __str__(self) -> str:
        return f"{self.source}:{self.import_type}:{self.status}"
