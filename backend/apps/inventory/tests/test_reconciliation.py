from decimal import Decimal

from django.test import TestCase

from apps.catalog.models import CatalogEntry, Product, Unit
from apps.core.models import Warehouse
from apps.inventory.errors import ConsistencyViolation, InvalidMerge, NotFound
from apps.inventory.models import InventoryRecord, InventoryTransaction, ProductMerge
from apps.inventory.services import history, ledger, reconciliation
from apps.sales.models import Order, OrderItem


class ProductMergeTests(TestCase):
    def setUp(self):
        self.depot = Warehouse.objects.create(code="DEPOT", name="Depot central")
        self.showroom = Warehouse.objects.create(code="SHOW", name="Showroom", type=Warehouse.Type.RETAIL)
        self.keep = Product.objects.create(code="GRES-6060-BEIGE", name="Gres 60x60 Beige")
        self.drop = Product.objects.create(code="GRES 60X60 BEIGE", name="GRES 60X60 BEIGE")
        ledger.receive(self.keep, self.depot, "OWNED", "100")
        ledger.receive(self.drop, self.depot, "OWNED", "50")
        ledger.receive(self.drop, self.showroom, "OWNED", "20")
        ledger.reserve(self.drop, self.depot, "OWNED", "10")
        order = Order.objects.create(order_number="CMD-1", customer_name="Chantier Bir El Djir", warehouse=self.depot)
        self.order_item = OrderItem.objects.create(order=order, product=self.drop, quantity=Decimal("10"))

    def test_merge_combines_stock_and_repoints_references(self):
        product_merge = reconciliation.merge(self.keep, self.drop, performed_by="admin")

        depot = ledger.stock_record(self.keep, self.depot)
        self.assertEqual(depot.quantity_on_hand, Decimal("150"))
        self.assertEqual(depot.quantity_reserved, Decimal("10"))
        self.assertEqual(ledger.on_hand(self.keep, self.showroom), Decimal("20"))
        self.assertFalse(InventoryRecord.objects.filter(product=self.drop).exists())
        self.assertFalse(InventoryTransaction.objects.filter(product=self.drop).exists())

        self.drop.refresh_from_db()
        self.order_item.refresh_from_db()
        self.assertFalse(self.drop.is_active)
        self.assertEqual(self.order_item.product_id, self.keep.id)
        self.assertEqual(len(product_merge.repointed["inventory_transactions"]), 2)
        self.assertEqual(product_merge.performed_by, "admin")

    def test_merged_records_still_replay(self):
        reconciliation.merge(self.keep, self.drop)

        for record in InventoryRecord.objects.all():
            history.verify_consistency(record)

    def test_merge_and_rebuild_refreshes_catalog(self):
        reconciliation.merge_and_rebuild(self.keep, self.drop)

        self.assertEqual(CatalogEntry.objects.count(), 1)
        self.assertEqual(CatalogEntry.objects.get().total_qty, Decimal("170"))

    def test_merge_rejects_invalid_pairs(self):
        with self.assertRaises(InvalidMerge):
            reconciliation.merge(self.keep, self.keep)

        sqm = Product.objects.create(code="GRES-6060-M2", name="Gres 60x60 (m2)", primary_unit=Unit.SQM)
        with self.assertRaises(InvalidMerge):
            reconciliation.merge(self.keep, sqm)

        reconciliation.merge(self.keep, self.drop)
        with self.assertRaises(NotFound):
            reconciliation.merge(self.keep, self.drop)

    def test_restore_puts_both_products_back(self):
        product_merge = reconciliation.merge(self.keep, self.drop)

        reconciliation.restore_snapshot(product_merge, performed_by="admin")

        self.drop.refresh_from_db()
        self.order_item.refresh_from_db()
        self.assertTrue(self.drop.is_active)
        self.assertEqual(self.order_item.product_id, self.drop.id)
        self.assertEqual(ledger.on_hand(self.keep, self.depot), Decimal("100"))
        self.assertIsNone(ledger.stock_record(self.keep, self.showroom))
        self.assertEqual(ledger.stock_record(self.drop, self.depot).quantity_reserved, Decimal("10"))
        self.assertEqual(ledger.on_hand(self.drop, self.showroom), Decimal("20"))
        for record in InventoryRecord.objects.all():
            history.verify_consistency(record)
        self.assertIsNotNone(ProductMerge.objects.get().restored_at)

    def test_restore_refused_after_new_movements(self):
        product_merge = reconciliation.merge(self.keep, self.drop)
        ledger.issue(self.keep, self.depot, "OWNED", "5")

        with self.assertRaises(ConsistencyViolation):
            reconciliation.restore_snapshot(product_merge)

        self.drop.refresh_from_db()
        self.assertFalse(self.drop.is_active)

    def test_restore_twice_is_refused(self):
        product_merge = reconciliation.merge(self.keep, self.drop)
        reconciliation.restore_snapshot(product_merge)

        with self.assertRaises(InvalidMerge):
            reconciliation.restore_snapshot(product_merge)
