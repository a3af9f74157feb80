from django.core.management.base import BaseCommand

from laundry_core.workflows.sla_scanner import check_overdue_services


class Command(BaseCommand):
    help = "Raise SLA alerts for services and deliveries stuck in a status"

    def handle(self, *args, **options):
        created = check_overdue_services()
        self.stdout.write(self.style.SUCCESS(f"{created} new SLA alert(s) raised."))
