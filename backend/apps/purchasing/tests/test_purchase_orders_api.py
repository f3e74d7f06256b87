from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import Product, Supplier
from apps.core.models import Warehouse
from apps.purchasing.models import PurchaseOrder, PurchaseOrderStatus


class PurchaseOrderApiTests(APITestCase):
    def setUp(self):
        self.client.credentials(HTTP_X_API_KEY="dev-api-key")
        self.depot = Warehouse.objects.create(code="DEPOT", name="Depot central")
        self.supplier = Supplier.objects.create(name="Cerame Sud", is_consignor=True)
        self.product = Product.objects.create(code="GRES-6060-BEIGE", name="Gres 60x60 Beige")

    def _payload(self, **overrides):
        payload = {
            "po_number": "PO-2026-010",
            "supplier": str(self.supplier.id),
            "warehouse": str(self.depot.id),
            "ownership_type": "CONSIGNMENT",
            "order_date": "2026-03-01",
            "items": [{"product": str(self.product.id), "quantity": "3", "unit": "palette", "unit_price": "1200.00"}],
        }
        payload.update(overrides)
        return payload

    def test_create_purchase_order_returns_201(self):
        response = self.client.post("/api/v1/purchase-orders/", self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        purchase_order = PurchaseOrder.objects.get()
        self.assertEqual(purchase_order.status, PurchaseOrderStatus.ORDERED)
        self.assertEqual(purchase_order.items.get().unit, "PALLET")
        self.assertEqual(response.json()["items"][0]["product_code"], "GRES-6060-BEIGE")

    def test_create_purchase_order_without_items_returns_400(self):
        response = self.client.post("/api/v1/purchase-orders/", self._payload(items=[]), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("items", response.json()["field_errors"])

    def test_inactive_product_is_rejected(self):
        self.product.is_active = False
        self.product.save(update_fields=["is_active"])

        response = self.client.post("/api/v1/purchase-orders/", self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters_by_status(self):
        self.client.post("/api/v1/purchase-orders/", self._payload(), format="json")

        ordered = self.client.get("/api/v1/purchase-orders/?status=ordered")
        received = self.client.get("/api/v1/purchase-orders/?status=RECEIVED")

        self.assertEqual(len(ordered.json()), 1)
        self.assertEqual(received.json(), [])
