from decimal import Decimal

from django.db.models import Sum
from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import Brand, CatalogEntry, Product
from apps.catalog.services import projection
from apps.core.models import Warehouse
from apps.inventory.models import InventoryRecord
from apps.inventory.services import ledger, reconciliation


class CatalogProjectionTests(APITestCase):
    def setUp(self):
        self.client.credentials(HTTP_X_API_KEY="dev-api-key")
        self.depot = Warehouse.objects.create(code="DEPOT", name="Depot central")
        self.showroom = Warehouse.objects.create(code="SHOW", name="Showroom", type=Warehouse.Type.RETAIL)
        artec = Brand.objects.create(name="ARTEC")
        cersanit = Brand.objects.create(name="CERSANIT")
        self.beige = Product.objects.create(
            code="GRES-6060-BEIGE",
            name="Gres 60x60 Beige",
            brand=artec,
            choix="1er",
            calibre="C1",
            pieces_per_carton=Decimal("4"),
            cartons_per_pallet=Decimal("40"),
            base_price=Decimal("1250.00"),
            purchase_price=Decimal("900.00"),
        )
        self.white = Product.objects.create(
            code="FAI-2540-BLANC",
            name="Faience 25x40 Blanc",
            brand=cersanit,
            choix="2eme",
            base_price=Decimal("600.00"),
            purchase_price=Decimal("400.00"),
        )
        ledger.receive(self.beige, self.depot, "OWNED", "320")
        ledger.receive(self.beige, self.showroom, "OWNED", "40")
        ledger.receive(self.white, self.depot, "OWNED", "100", pallets="1", cartons="10")

    def test_rebuild_sums_stock_across_warehouses(self):
        refresh = projection.rebuild()

        self.assertEqual(refresh.rows, 2)
        entry = CatalogEntry.objects.get(product_id=self.beige.id)
        self.assertEqual(entry.total_qty, Decimal("360"))
        self.assertEqual(entry.nb_colis, Decimal("90"))
        self.assertEqual(entry.famille, "ARTEC")
        self.assertEqual(entry.refreshed_at, refresh.refreshed_at)

    def test_rebuild_derives_missing_ratios_from_stock(self):
        projection.rebuild()

        entry = CatalogEntry.objects.get(product_id=self.white.id)
        self.assertEqual(entry.derived_pieces_per_carton, Decimal("10"))
        self.assertEqual(entry.derived_cartons_per_pallet, Decimal("10"))

    def test_rebuild_drops_inactive_products(self):
        projection.rebuild()
        self.white.is_active = False
        self.white.save(update_fields=["is_active", "updated_at"])

        projection.rebuild()

        self.assertEqual(list(CatalogEntry.objects.values_list("product_code", flat=True)), ["GRES-6060-BEIGE"])

    def test_rebuild_matches_ledger_after_mixed_movements(self):
        duplicate = Product.objects.create(code="GRES-6060-BEIGE-B", name="Gres 60x60 Beige")
        ledger.receive(duplicate, self.showroom, "OWNED", "12")
        untouched = Product.objects.create(code="JOINT-GRIS", name="Joint gris")

        with self.assertLogs("apps.inventory.services.ledger", level="WARNING"):
            ledger.issue(self.beige, self.depot, "OWNED", "500")
        ledger.adjust(self.beige, self.showroom, "OWNED", "15")
        with self.assertLogs("apps.inventory.services.ledger", level="WARNING"):
            ledger.transfer(self.beige, self.depot, self.showroom, "OWNED", "20")
        ledger.receive(self.beige, self.depot, "CONSIGNMENT", "80")
        ledger.transfer(self.beige, self.depot, self.showroom, "CONSIGNMENT", "30")
        ledger.adjust(self.white, self.depot, "OWNED", "-7.5", "0", "0")
        ledger.transfer(self.white, self.depot, self.showroom, "OWNED", "25")
        reconciliation.merge(self.beige, duplicate)

        projection.rebuild()

        active = Product.objects.filter(is_active=True)
        self.assertEqual(CatalogEntry.objects.count(), active.count())
        for product in active:
            on_hand = InventoryRecord.objects.filter(product=product).aggregate(total=Sum("quantity_on_hand"))["total"]
            entry = CatalogEntry.objects.get(product_id=product.id)
            self.assertEqual(entry.total_qty, on_hand or Decimal("0"), product.code)

        self.assertEqual(CatalogEntry.objects.get(product_id=self.beige.id).total_qty, Decimal("-33"))
        self.assertEqual(CatalogEntry.objects.get(product_id=self.white.id).total_qty, Decimal("92.5"))
        self.assertEqual(CatalogEntry.objects.get(product_id=untouched.id).total_qty, Decimal("0"))
        self.assertFalse(CatalogEntry.objects.filter(product_id=duplicate.id).exists())

    def test_projection_lags_until_rebuilt(self):
        projection.rebuild()
        ledger.receive(self.white, self.depot, "OWNED", "50")

        self.assertEqual(CatalogEntry.objects.get(product_id=self.white.id).total_qty, Decimal("100"))
        projection.rebuild()
        self.assertEqual(CatalogEntry.objects.get(product_id=self.white.id).total_qty, Decimal("150"))

    def test_query_catalog_filters_sorts_and_counts(self):
        projection.rebuild()

        page = projection.query_catalog(sort_by="totalQty", sort_order="DESC", limit=1)
        self.assertEqual(page.total_count, 2)
        self.assertEqual(page.total_pages, 2)
        self.assertEqual(page.results[0].product_code, "GRES-6060-BEIGE")

        page = projection.query_catalog(search="cersanit")
        self.assertEqual([row.product_code for row in page.results], ["FAI-2540-BLANC"])

        page = projection.query_catalog(ids=f"{self.white.id}, {self.beige.id}", choix="1er")
        self.assertEqual(page.total_count, 1)

    def test_query_catalog_past_last_page_keeps_total(self):
        projection.rebuild()

        page = projection.query_catalog(page=5, limit=1)

        self.assertEqual(page.results, [])
        self.assertEqual(page.total_count, 2)

    def test_catalog_list_endpoint(self):
        projection.rebuild()

        response = self.client.get("/api/v1/catalog/?famille=ARTEC")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body["pagination"]["total_count"], 1)
        self.assertEqual(body["results"][0]["total_qty"], "360.00")
        self.assertIsNotNone(body["refreshed_at"])

    def test_catalog_filters_endpoint(self):
        projection.rebuild()

        response = self.client.get("/api/v1/catalog/filters/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["familles"], ["ARTEC", "CERSANIT"])
        self.assertEqual(response.json()["calibres"], ["C1"])

    def test_catalog_stats_endpoint(self):
        projection.rebuild()

        response = self.client.get("/api/v1/catalog/stats/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body["total_products"], 2)
        self.assertEqual(body["total_qty"], "460.00")
        self.assertEqual(Decimal(body["total_purchase_value"]), Decimal("364000.00"))

    def test_rebuild_endpoint(self):
        response = self.client.post("/api/v1/catalog/rebuild/", {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["rows"], 2)
        self.assertEqual(CatalogEntry.objects.count(), 2)
