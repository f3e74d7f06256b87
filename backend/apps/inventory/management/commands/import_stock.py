from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from apps.core.models import Warehouse
from apps.inventory.errors import InventoryError
from apps.inventory.services import stock_import


class Command(BaseCommand):
    help = "Import a stock count CSV into one warehouse and rebuild the catalog"

    def add_arguments(self, parser):
        parser.add_argument("path", help="CSV export of the stock count")
        parser.add_argument("--warehouse", required=True, help="Warehouse code")
        parser.add_argument("--actor", default="manage.py", help="Recorded as created_by")

    def handle(self, *args, **options):
        path = Path(options["path"])
        if not path.is_file():
            raise CommandError(f"File not found: {path}")

        warehouse = Warehouse.objects.filter(code=options["warehouse"].strip().upper(), is_active=True).first()
        if warehouse is None:
            raise CommandError(f"Warehouse {options['warehouse']!r} not found.")

        rows = stock_import.parse_stock_csv(path.read_bytes())
        self.stdout.write(f"Parsed {len(rows)} rows from {path.name}")
        try:
            result = stock_import.import_stock(rows, warehouse, created_by=options["actor"])
        except InventoryError as exc:
            raise CommandError(f"{exc.kind.value}: {exc.message}") from exc

        for error in result.errors[: stock_import.MAX_REPORTED_ERRORS]:
            self.stdout.write(self.style.WARNING(f"  row {error['row']} ({error['product']}): {error['error']}"))
        self.stdout.write(
            self.style.SUCCESS(
                f"Imported {result.successful} rows, {result.failed} failed, "
                f"{result.created_products} products created."
            )
        )
