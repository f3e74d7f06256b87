import uuid

from django.db import models


class Warehouse(models.Model):
    class Type(models.TextChoices):
        WHOLESALE = "WHOLESALE", "WHOLESALE"
        RETAIL = "RETAIL", "RETAIL"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=16, choices=Type.choices, default=Type.WHOLESALE)
    location = models.CharField(max_length=255, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "core_warehouse"
        ordering = ["code"]

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"
