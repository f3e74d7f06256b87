from decimal import Decimal

from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import CatalogEntry, Product, Supplier, Unit
from apps.core.models import Warehouse
from apps.integration.models import IntegrationImportBatch
from apps.inventory.models import InventoryRecord, InventoryTransaction, ReferenceType, TransactionType
from apps.inventory.services import ledger
from apps.purchasing.models import GoodsReceipt, PurchaseOrder, PurchaseOrderItem, PurchaseOrderStatus


class GoodsReceiptApiTests(APITestCase):
    def setUp(self):
        self.client.credentials(HTTP_X_API_KEY="dev-api-key")
        self.depot = Warehouse.objects.create(code="DEPOT", name="Depot central")
        self.supplier = Supplier.objects.create(name="Cerame Sud")
        self.product = Product.objects.create(
            code="GRES-6060-BEIGE",
            name="Gres 60x60 Beige",
            pieces_per_carton=Decimal("4"),
            cartons_per_pallet=Decimal("40"),
        )
        self.purchase_order = PurchaseOrder.objects.create(
            po_number="PO-2026-001",
            supplier=self.supplier,
            warehouse=self.depot,
            order_date="2026-02-20",
        )
        self.item = PurchaseOrderItem.objects.create(
            purchase_order=self.purchase_order,
            product=self.product,
            quantity=Decimal("2"),
            unit=Unit.PALLET,
        )

    def _payload(self, delivery_note_number="BL-001", **line):
        line.setdefault("purchase_order_item", str(self.item.id))
        line.setdefault("quantity", "1")
        return {
            "purchase_order": str(self.purchase_order.id),
            "delivery_note_number": delivery_note_number,
            "received_at": "2026-02-26T10:00:00Z",
            "metadata": {"source": "manual"},
            "lines": [line],
        }

    def test_create_goods_receipt_returns_201(self):
        response = self.client.post(
            "/api/v1/goods-receipts/",
            self._payload(),
            format="json",
            HTTP_IDEMPOTENCY_KEY="gr-create-001",
            HTTP_X_ACTOR="magasinier",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(GoodsReceipt.objects.count(), 1)
        receipt = GoodsReceipt.objects.get()
        self.assertEqual(receipt.warehouse_id, self.depot.id)
        self.assertEqual(receipt.received_by, "magasinier")
        self.assertIsNotNone(response.json()["catalog_refreshed_at"])

    def test_receipt_posts_stock_in_primary_unit(self):
        self.client.post(
            "/api/v1/goods-receipts/",
            self._payload(),
            format="json",
            HTTP_IDEMPOTENCY_KEY="gr-stock-001",
        )

        self.assertEqual(ledger.on_hand(self.product, self.depot), Decimal("160"))
        row = InventoryTransaction.objects.get()
        self.assertEqual(row.transaction_type, TransactionType.IN)
        self.assertEqual(row.reference_type, ReferenceType.GOODS_RECEIPT)
        self.assertEqual(row.reference_id, str(GoodsReceipt.objects.get().id))
        self.assertEqual(row.pallet_count, Decimal("1"))
        self.assertEqual(CatalogEntry.objects.get().total_qty, Decimal("160"))

        line = GoodsReceipt.objects.get().lines.get()
        self.assertEqual(line.unit, Unit.PALLET)
        self.assertEqual(line.stock_quantity, Decimal("160"))

    def test_receipts_advance_purchase_order_status(self):
        self.client.post(
            "/api/v1/goods-receipts/", self._payload("BL-001"), format="json", HTTP_IDEMPOTENCY_KEY="gr-part-1"
        )
        self.purchase_order.refresh_from_db()
        self.assertEqual(self.purchase_order.status, PurchaseOrderStatus.PARTIALLY_RECEIVED)

        self.client.post(
            "/api/v1/goods-receipts/",
            self._payload("BL-002", quantity="40", unit="colis"),
            format="json",
            HTTP_IDEMPOTENCY_KEY="gr-part-2",
        )
        self.purchase_order.refresh_from_db()
        self.item.refresh_from_db()
        self.assertEqual(self.item.received_quantity, Decimal("2"))
        self.assertEqual(self.purchase_order.status, PurchaseOrderStatus.RECEIVED)

    def test_line_without_item_uses_product_unit(self):
        payload = self._payload(purchase_order_item=None, product=str(self.product.id), quantity="12")

        response = self.client.post(
            "/api/v1/goods-receipts/", payload, format="json", HTTP_IDEMPOTENCY_KEY="gr-free-line"
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(ledger.on_hand(self.product, self.depot), Decimal("12"))
        self.assertEqual(response.json()["lines"][0]["unit"], Unit.PIECE)

    def test_service_line_advances_item_without_stock(self):
        transport = Product.objects.create(code="TRANSPORT", name="Transport chantier")
        transport_item = PurchaseOrderItem.objects.create(
            purchase_order=self.purchase_order,
            product=transport,
            quantity=Decimal("1"),
            unit=Unit.PIECE,
        )

        response = self.client.post(
            "/api/v1/goods-receipts/",
            self._payload(purchase_order_item=str(transport_item.id)),
            format="json",
            HTTP_IDEMPOTENCY_KEY="gr-service-001",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        transport_item.refresh_from_db()
        self.assertEqual(transport_item.received_quantity, Decimal("1"))
        self.assertFalse(InventoryRecord.objects.filter(product=transport).exists())
        self.assertFalse(InventoryTransaction.objects.exists())
        self.assertFalse(CatalogEntry.objects.filter(product_id=transport.id, total_qty__gt=0).exists())

    def test_create_goods_receipt_with_invalid_quantity_returns_400(self):
        response = self.client.post(
            "/api/v1/goods-receipts/",
            self._payload(quantity="0"),
            format="json",
            HTTP_IDEMPOTENCY_KEY="gr-invalid-001",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("quantity", response.json()["lines"][0])
        self.assertFalse(InventoryTransaction.objects.exists())

    def test_line_from_other_purchase_order_returns_400(self):
        other = PurchaseOrder.objects.create(
            po_number="PO-2026-002",
            supplier=self.supplier,
            warehouse=self.depot,
            order_date="2026-02-21",
        )
        foreign_item = PurchaseOrderItem.objects.create(purchase_order=other, product=self.product, quantity=1)

        response = self.client.post(
            "/api/v1/goods-receipts/",
            self._payload(purchase_order_item=str(foreign_item.id)),
            format="json",
            HTTP_IDEMPOTENCY_KEY="gr-foreign-001",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("purchase_order_item", response.json()["lines"][0])

    def test_unconvertible_line_returns_422_and_rolls_back(self):
        loose = Product.objects.create(code="GRES-4545", name="Gres 45x45")
        payload = self._payload(purchase_order_item=None, product=str(loose.id), quantity="3", unit="CARTON")

        response = self.client.post(
            "/api/v1/goods-receipts/", payload, format="json", HTTP_IDEMPOTENCY_KEY="gr-ratio-001"
        )

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.json()["code"], "MissingPackagingRatio")
        self.assertFalse(GoodsReceipt.objects.exists())
        batch = IntegrationImportBatch.objects.get(idempotency_key="gr-ratio-001")
        self.assertEqual(batch.status, IntegrationImportBatch.Status.FAILED)

    def test_create_goods_receipt_without_idempotency_key_returns_400(self):
        response = self.client.post("/api/v1/goods-receipts/", self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["detail"], "Idempotency-Key header is required.")

    def test_create_goods_receipt_is_idempotent_with_same_key(self):
        first = self.client.post(
            "/api/v1/goods-receipts/", self._payload(), format="json", HTTP_IDEMPOTENCY_KEY="gr-idem-001"
        )
        second = self.client.post(
            "/api/v1/goods-receipts/", self._payload(), format="json", HTTP_IDEMPOTENCY_KEY="gr-idem-001"
        )

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_201_CREATED)
        self.assertEqual(first.json()["id"], second.json()["id"])
        self.assertEqual(GoodsReceipt.objects.count(), 1)
        self.assertEqual(ledger.on_hand(self.product, self.depot), Decimal("160"))
        self.assertEqual(
            IntegrationImportBatch.objects.filter(
                import_type="goods_receipt",
                idempotency_key="gr-idem-001",
                status=IntegrationImportBatch.Status.COMPLETED,
            ).count(),
            1,
        )

    def test_retrieve_goods_receipt(self):
        created = self.client.post(
            "/api/v1/goods-receipts/", self._payload(), format="json", HTTP_IDEMPOTENCY_KEY="gr-get-001"
        )

        response = self.client.get(f"/api/v1/goods-receipts/{created.json()['id']}/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["delivery_note_number"], "BL-001")
