"""Idempotent write bookkeeping shared by goods receipts and stock imports.

A client sends an ``Idempotency-Key`` header; the first COMPLETED batch for
(source, import type, key) stores the response, and later requests with the
same key get that response back without touching stock again. FAILED
batches are kept for auditing only and are never replayed.
"""
import json
import logging

from django.utils import timezone

from apps.integration.models import IntegrationImportBatch


logger = logging.getLogger(__name__)

IDEMPOTENCY_HEADER = "Idempotency-Key"
MISSING_KEY_DETAIL = f"{IDEMPOTENCY_HEADER} header is required."


def normalize_payload(data):
    return json.loads(json.dumps(data, default=str))


def idempotency_key(request) -> str:
    return (request.headers.get(IDEMPOTENCY_HEADER) or "").strip()


def find_completed_batch(import_type: str, key: str, source: str = "api"):
    if not key:
        return None
    return (
        IntegrationImportBatch.objects.filter(
            source=source,
            import_type=import_type,
            idempotency_key=key,
            status=IntegrationImportBatch.Status.COMPLETED,
        )
        .order_by("-started_at")
        .first()
    )


def replay(batch: IntegrationImportBatch) -> tuple[dict, int]:
    result = batch.result or {}
    logger.info("Replaying %s batch %s for key %s", batch.import_type, batch.pk, batch.idempotency_key)
    return result.get("data", {}), result.get("status_code", 200)


def start_batch(import_type: str, key: str, payload, source: str = "api") -> IntegrationImportBatch:
    return IntegrationImportBatch.objects.create(
        source=source,
        import_type=import_type,
        idempotency_key=key or None,
        status=IntegrationImportBatch.Status.STARTED,
        payload=normalize_payload(payload),
    )


def complete_batch(batch: IntegrationImportBatch, status_code: int, data) -> None:
    batch.status = IntegrationImportBatch.Status.COMPLETED
    batch.finished_at = timezone.now()
    batch.result = {"status_code": status_code, "data": normalize_payload(data)}
    batch.save(update_fields=["status", "finished_at", "result", "updated_at"])


def fail_batch(batch: IntegrationImportBatch, status_code: int, errors) -> None:
    batch.status = IntegrationImportBatch.Status.FAILED
    batch.finished_at = timezone.now()
    batch.result = {"status_code": status_code, "errors": normalize_payload(errors)}
    batch.save(update_fields=["status", "finished_at", "result", "updated_at"])
    logger.warning("%s batch %s failed with %s", batch.import_type, batch.pk, status_code)
