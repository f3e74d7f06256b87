import tempfile
from decimal import Decimal
from io import StringIO
from pathlib import Path

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from apps.catalog.models import CatalogEntry, Product
from apps.core.models import Warehouse
from apps.inventory.models import ProductMerge
from apps.inventory.services import ledger


class ManagementCommandTests(TestCase):
    def setUp(self):
        self.depot = Warehouse.objects.create(code="DEPOT", name="Depot central")
        self.keep = Product.objects.create(code="GRES-6060-BEIGE", name="Gres 60x60 Beige")
        self.drop = Product.objects.create(code="GRES 60X60 BEIGE", name="GRES 60X60 BEIGE")
        ledger.receive(self.keep, self.depot, "OWNED", "10")
        ledger.receive(self.drop, self.depot, "OWNED", "5")

    def test_rebuild_catalog(self):
        out = StringIO()

        call_command("rebuild_catalog", stdout=out)

        self.assertEqual(CatalogEntry.objects.count(), 2)
        self.assertIn("Catalog rebuilt: 2 rows", out.getvalue())

    def test_merge_products_by_code(self):
        out = StringIO()

        call_command("merge_products", "GRES-6060-BEIGE", "GRES 60X60 BEIGE", "--actor", "ops", stdout=out)

        self.assertEqual(ProductMerge.objects.get().performed_by, "ops")
        self.assertEqual(ledger.on_hand(self.keep, self.depot), Decimal("15"))
        self.assertEqual(CatalogEntry.objects.get().total_qty, Decimal("15"))

    def test_merge_products_unknown_reference(self):
        with self.assertRaises(CommandError):
            call_command("merge_products", "GRES-6060-BEIGE", "NOPE", stdout=StringIO())

    def test_import_stock(self):
        with tempfile.TemporaryDirectory() as directory:
            path = Path(directory) / "stock.csv"
            path.write_text("Libellé,Qté\nGRES-6060-BEIGE,42\n", encoding="utf-8")
            out = StringIO()

            call_command("import_stock", str(path), "--warehouse", "depot", stdout=out)

        self.assertEqual(ledger.on_hand(self.keep, self.depot), Decimal("42"))
        self.assertIn("Imported 1 rows, 0 failed", out.getvalue())

    def test_import_stock_unknown_warehouse(self):
        with self.assertRaises(CommandError):
            call_command("import_stock", __file__, "--warehouse", "NOWHERE", stdout=StringIO())
