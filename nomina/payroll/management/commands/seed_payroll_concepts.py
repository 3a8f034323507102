from django.core.management.base import BaseCommand

from payroll.services.concept_service import SYSTEM_CONCEPTS, ensure_system_concepts


class Command(BaseCommand):
    help = (
        "Creates the statutory payroll concepts used by the calculation engine "
        "(salary, overtime, transport, health, pension, solidarity fund, withholding, unpaid leave). "
        "Existing concepts are left untouched."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            '--list',
            action='store_true',
            help='Only print the statutory codes without writing anything.'
        )

    def handle(self, *args, **options):
        if options['list']:
            for code, defaults in SYSTEM_CONCEPTS.items():
                self.stdout.write(f"{code:<24} {defaults['type']:<10} {defaults['name']}")
            return

        concepts = ensure_system_concepts()
        for concept in concepts:
            self.stdout.write(f"{concept.code} ({concept.type}) - {concept.get_status_display()}")
        self.stdout.write(self.style.SUCCESS(f"{len(concepts)} statutory concept(s) in place."))
