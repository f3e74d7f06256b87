import uuid
from decimal import Decimal
from unittest import mock

from django.test import TestCase

from apps.catalog.models import Product, Unit
from apps.catalog.services.units import PackagingSpec, convert
from apps.core.models import Warehouse
from apps.inventory.errors import (
    ConsistencyViolation,
    InsufficientStock,
    InvalidQuantity,
    InvalidTransfer,
    NotFound,
)
from apps.inventory.models import InventoryRecord, InventoryTransaction, ReferenceType, TransactionType
from apps.inventory.services import history, ledger


class LedgerTests(TestCase):
    def setUp(self):
        self.depot = Warehouse.objects.create(code="DEPOT", name="Depot central")
        self.showroom = Warehouse.objects.create(code="SHOW", name="Showroom", type=Warehouse.Type.RETAIL)
        self.product = Product.objects.create(
            code="GRES-6060-BEIGE",
            name="Gres 60x60 Beige",
            pieces_per_carton=Decimal("8"),
            cartons_per_pallet=Decimal("60"),
        )

    def test_receive_creates_record_and_in_row(self):
        entry = ledger.receive(self.product, self.depot, "OWNED", "500", reference_id="GR-1")

        self.assertEqual(entry.record.quantity_on_hand, Decimal("500"))
        self.assertEqual(entry.transaction.transaction_type, TransactionType.IN)
        self.assertEqual(entry.transaction.reference_type, ReferenceType.GOODS_RECEIPT)
        self.assertEqual(entry.transaction.reference_id, "GR-1")
        self.assertEqual(InventoryRecord.objects.count(), 1)

    def test_issue_past_zero_goes_negative_and_warns(self):
        ledger.receive(self.product, self.depot, "OWNED", "500")
        pieces = convert(PackagingSpec.for_product(self.product), "2", Unit.PALLET, Unit.PIECE)

        with self.assertLogs("apps.inventory.services.ledger", level="WARNING") as logs:
            entry = ledger.issue(self.product, self.depot, "OWNED", pieces, reference_id="CMD-1")

        self.assertEqual(pieces, Decimal("960"))
        self.assertEqual(entry.record.quantity_on_hand, Decimal("-460"))
        self.assertTrue(entry.record.is_overdrawn)
        self.assertIn("Negative stock", logs.output[0])

        out = InventoryTransaction.objects.get(transaction_type=TransactionType.OUT)
        self.assertEqual(out.quantity, Decimal("960"))
        self.assertEqual(out.signed_quantity, Decimal("-960"))
        self.assertEqual(out.pallet_count, Decimal("2"))
        self.assertEqual(out.carton_count, Decimal("120"))

    def test_adjustment_stores_signed_delta(self):
        ledger.receive(self.product, self.depot, "OWNED", "100")

        entry = ledger.adjust(self.product, self.depot, "OWNED", "-15", created_by="inventaire")

        self.assertEqual(entry.record.quantity_on_hand, Decimal("85"))
        self.assertEqual(entry.transaction.quantity, Decimal("-15"))
        self.assertEqual(entry.transaction.reference_type, ReferenceType.MANUAL_ADJUSTMENT)
        self.assertEqual(entry.transaction.created_by, "inventaire")

    def test_invalid_quantities_are_rejected(self):
        with self.assertRaises(InvalidQuantity):
            ledger.adjust(self.product, self.depot, "OWNED", "0")
        with self.assertRaises(InvalidQuantity):
            ledger.receive(self.product, self.depot, "OWNED", "-3")
        with self.assertRaises(InvalidQuantity):
            ledger.issue(self.product, self.depot, "OWNED", "abc")
        with self.assertRaises(InvalidQuantity):
            ledger.adjust(self.product, self.depot, "OWNED", "5", transaction_type=TransactionType.OUT)
        with self.assertRaises(InvalidQuantity):
            ledger.receive(self.product, self.depot, "BORROWED", "5")

        self.assertFalse(InventoryTransaction.objects.exists())

    def test_unknown_product_or_warehouse_raises_not_found(self):
        with self.assertRaises(NotFound):
            ledger.receive(uuid.uuid4(), self.depot, "OWNED", "1")
        with self.assertRaises(NotFound):
            ledger.receive(self.product, "not-a-uuid", "OWNED", "1")

        self.depot.is_active = False
        self.depot.save(update_fields=["is_active"])
        with self.assertRaises(NotFound):
            ledger.receive(self.product, self.depot, "OWNED", "1")

    def test_ownership_types_are_separate_balances(self):
        ledger.receive(self.product, self.depot, "OWNED", "10")
        ledger.receive(self.product, self.depot, "consignment", "4")

        self.assertEqual(ledger.on_hand(self.product, self.depot, "OWNED"), Decimal("10"))
        self.assertEqual(ledger.on_hand(self.product, self.depot, "CONSIGNMENT"), Decimal("4"))

    def test_transactions_are_immutable(self):
        entry = ledger.receive(self.product, self.depot, "OWNED", "10")

        with self.assertRaises(ValueError):
            entry.transaction.save()
        with self.assertRaises(ValueError):
            entry.transaction.delete()


class ReservationTests(TestCase):
    def setUp(self):
        self.depot = Warehouse.objects.create(code="DEPOT", name="Depot central")
        self.product = Product.objects.create(code="JOINT-GRIS", name="Joint gris")
        ledger.receive(self.product, self.depot, "OWNED", "50")

    def test_reserve_and_release_write_no_ledger_rows(self):
        record = ledger.reserve(self.product, self.depot, "OWNED", "20")
        self.assertEqual(record.quantity_available, Decimal("30"))

        record = ledger.release(self.product, self.depot, "OWNED", "5")
        self.assertEqual(record.quantity_reserved, Decimal("15"))
        self.assertEqual(InventoryTransaction.objects.count(), 1)

    def test_reserve_beyond_available_raises(self):
        ledger.reserve(self.product, self.depot, "OWNED", "40")

        with self.assertRaises(InsufficientStock):
            ledger.reserve(self.product, self.depot, "OWNED", "11")

        record = ledger.stock_record(self.product, self.depot)
        self.assertEqual(record.quantity_reserved, Decimal("40"))

    def test_release_beyond_reserved_raises(self):
        ledger.reserve(self.product, self.depot, "OWNED", "5")

        with self.assertRaises(InvalidQuantity):
            ledger.release(self.product, self.depot, "OWNED", "6")


class TransferTests(TestCase):
    def setUp(self):
        self.depot = Warehouse.objects.create(code="DEPOT", name="Depot central")
        self.showroom = Warehouse.objects.create(code="SHOW", name="Showroom", type=Warehouse.Type.RETAIL)
        self.product = Product.objects.create(code="GRES-4545", name="Gres 45x45")
        ledger.receive(self.product, self.depot, "OWNED", "100")

    def test_transfer_conserves_total_stock(self):
        result = ledger.transfer(self.product, self.depot, self.showroom, "OWNED", "30", created_by="magasin")

        self.assertEqual(ledger.on_hand(self.product, self.depot), Decimal("70"))
        self.assertEqual(ledger.on_hand(self.product, self.showroom), Decimal("30"))
        rows = InventoryTransaction.objects.filter(correlation_id=result.correlation_id)
        self.assertEqual(rows.count(), 2)
        self.assertEqual(sorted(row.quantity for row in rows), [Decimal("-30"), Decimal("30")])
        self.assertTrue(all(row.transaction_type == TransactionType.TRANSFER for row in rows))

    def test_transfer_to_same_warehouse_raises(self):
        with self.assertRaises(InvalidTransfer):
            ledger.transfer(self.product, self.depot, self.depot, "OWNED", "1")

    def test_transfer_is_atomic_when_second_leg_fails(self):
        original = ledger._append_transaction
        calls = []

        def fail_on_second_leg(**fields):
            calls.append(fields)
            if len(calls) == 2:
                raise RuntimeError("disk full")
            return original(**fields)

        with mock.patch("apps.inventory.services.ledger._append_transaction", side_effect=fail_on_second_leg):
            with self.assertRaises(RuntimeError):
                ledger.transfer(self.product, self.depot, self.showroom, "OWNED", "30")

        self.assertEqual(ledger.on_hand(self.product, self.depot), Decimal("100"))
        self.assertEqual(ledger.on_hand(self.product, self.showroom), Decimal("0"))
        self.assertEqual(InventoryTransaction.objects.count(), 1)


class HistoryTests(TestCase):
    def setUp(self):
        self.depot = Warehouse.objects.create(code="DEPOT", name="Depot central")
        self.showroom = Warehouse.objects.create(code="SHOW", name="Showroom", type=Warehouse.Type.RETAIL)
        self.product = Product.objects.create(code="GRES-6060-GRIS", name="Gres 60x60 Gris")
        ledger.receive(self.product, self.depot, "OWNED", "200")
        ledger.issue(self.product, self.depot, "OWNED", "35", reference_id="CMD-7")
        ledger.adjust(self.product, self.depot, "OWNED", "-5")
        ledger.transfer(self.product, self.depot, self.showroom, "OWNED", "60")

    def test_replay_matches_records(self):
        for record in InventoryRecord.objects.all():
            self.assertEqual(history.verify_consistency(record), record.quantity_on_hand)

        self.assertEqual(history.replay_on_hand(self.product, self.depot, "OWNED"), Decimal("100"))

    def test_verify_consistency_detects_drift(self):
        InventoryRecord.objects.filter(warehouse=self.depot).update(quantity_on_hand=Decimal("99"))

        with self.assertRaises(ConsistencyViolation):
            history.verify_consistency(InventoryRecord.objects.get(warehouse=self.depot))

    def test_query_transactions_filters(self):
        self.assertEqual(history.query_transactions(transaction_type="out").count(), 1)
        self.assertEqual(history.query_transactions(reference_type="ORDER", reference_id="CMD-7").count(), 1)
        self.assertEqual(history.query_transactions(warehouse=self.showroom).count(), 1)
        self.assertEqual(history.query_transactions(search="gris", date_from="2000-01-01").count(), 5)
        self.assertEqual(history.query_transactions(date_to="2000-01-01").count(), 0)

    def test_parse_bound_rejects_garbage(self):
        with self.assertRaises(ValueError):
            history.parse_bound("yesterday")
        self.assertEqual(history.parse_bound("2026-03-01", end_of_day=True).hour, 23)
