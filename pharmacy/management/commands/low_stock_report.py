import json

from django.core.management.base import BaseCommand, CommandError

from pharmacy.services.inventory import format_item
from pharmacy.services.reporting import list_low_stock


class Command(BaseCommand):
    help = "Print inventory items at or below their reorder point."

    def add_arguments(self, parser):
        parser.add_argument('--json', action='store_true', help='Emit the report as JSON.')
        parser.add_argument('--fail-on-low', action='store_true',
                            help='Exit with an error when any item is low on stock.')

    def handle(self, *args, **options):
        items = list_low_stock()
        if options['json']:
            self.stdout.write(json.dumps([format_item(i) for i in items], indent=2))
        elif not items:
            self.stdout.write(self.style.SUCCESS('No items at or below their reorder point.'))
        else:
            for item in items:
                style = self.style.ERROR if item.current_stock == 0 else self.style.WARNING
                self.stdout.write(style(
                    f"{item.name}: {item.current_stock} {item.unit} (reorder at {item.reorder_point})"
                ))
        if items and options['fail_on_low']:
            raise CommandError(f'{len(items)} item(s) at or below reorder point')
