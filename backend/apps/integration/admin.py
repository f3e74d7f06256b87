from django.contrib import admin

from apps.integration.models import IntegrationImportBatch


@admin.register(IntegrationImportBatch)
class IntegrationImportBatchAdmin(admin.ModelAdmin):
    list_display = ("source", "import_type", "status", "idempotency_key", "started_at", "finished_at")
    search_fields = ("source", "import_type", "idempotency_key")
    list_filter = ("status", "source", "import_type")
