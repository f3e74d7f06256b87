from django.core.management.base import BaseCommand

from apps.catalog.services import projection


class Command(BaseCommand):
    help = "Rebuild the catalog projection from products and inventory records"

    def handle(self, *args, **options):
        refresh = projection.rebuild()
        self.stdout.write(
            self.style.SUCCESS(f"Catalog rebuilt: {refresh.rows} rows at {refresh.refreshed_at.isoformat()}")
        )
