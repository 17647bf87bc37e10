import csv
import os

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from coupons.services import create_coupon


class Command(BaseCommand):
    help = "Create trainer coupons from a CSV (trainer_name, discount_percent, trainer_id, max_uses)"

    def add_arguments(self, parser):
        parser.add_argument('csv_path')

    def handle(self, *args, **options):
        csv_path = options['csv_path']

        if not os.path.exists(csv_path):
            raise CommandError(f"File not found: {csv_path}")

        self.stdout.write(self.style.WARNING("Starting import..."))

        created = skipped = 0
        with open(csv_path, encoding='utf-8') as file:
            reader = csv.DictReader(file)
            for line_no, row in enumerate(reader, start=2):
                max_uses = (row.get('max_uses') or '').strip()
                try:
                    coupon = create_coupon(
                        row.get('trainer_name', ''),
                        discount_percent=(row.get('discount_percent') or '').strip() or 10,
                        trainer_id=(row.get('trainer_id') or '').strip() or None,
                        max_uses=int(max_uses) if max_uses else None,
                    )
                except (ValidationError, ValueError) as e:
                    skipped += 1
                    message = e.messages[0] if isinstance(e, ValidationError) else str(e)
                    self.stdout.write(self.style.ERROR(f"Line {line_no}: {message}"))
                    continue

                created += 1
                self.stdout.write(f"Created {coupon.code}")

        self.stdout.write(self.style.SUCCESS(f"Import completed! {created} created, {skipped} skipped"))
