from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from apps.catalog.models import Product
from apps.inventory.errors import InventoryError
from apps.inventory.services import reconciliation


class Command(BaseCommand):
    help = "Merge a duplicate product (DROP) into the product that survives (KEEP), then rebuild the catalog"

    def add_arguments(self, parser):
        parser.add_argument("keep", help="Code or id of the product to keep")
        parser.add_argument("drop", help="Code or id of the duplicate product")
        parser.add_argument("--actor", default="manage.py", help="Recorded as performed_by")

    def _product(self, reference: str) -> Product:
        product = Product.objects.filter(code=reference, is_active=True).first()
        if product is None:
            try:
                product = Product.objects.filter(pk=reference, is_active=True).first()
            except ValidationError:
                product = None
        if product is None:
            raise CommandError(f"Active product {reference!r} not found.")
        return product

    def handle(self, *args, **options):
        keep = self._product(options["keep"])
        drop = self._product(options["drop"])
        try:
            product_merge = reconciliation.merge_and_rebuild(keep, drop, performed_by=options["actor"])
        except InventoryError as exc:
            raise CommandError(f"{exc.kind.value}: {exc.message}") from exc

        moved = product_merge.repointed
        self.stdout.write(f"Merged {drop.code} into {keep.code} (merge {product_merge.pk})")
        for key, ids in moved.items():
            self.stdout.write(f"  {key}: {len(ids)} re-pointed")
        self.stdout.write(self.style.SUCCESS("Catalog rebuilt."))
