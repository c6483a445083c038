import json

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from ledger_core.exceptions import ReportGenerationError, StoreError
from ledger_core.models import Company
from ledger_core.reporting.engine import REPORT_TYPE_ALIASES, REPORT_TYPES
from ledger_core.reporting.periods import GRANULARITIES, SUMMARY
from ledger_core.services.reports import generate_report


class Command(BaseCommand):
    help = "Print a Profit & Loss or Balance Sheet for a company as JSON."

    def add_arguments(self, parser):
        parser.add_argument("company", help="Company slug")
        parser.add_argument("report_type", choices=(*REPORT_TYPES, *REPORT_TYPE_ALIASES))
        parser.add_argument("--start", required=True, help="YYYY-MM-DD")
        parser.add_argument("--end", required=True, help="YYYY-MM-DD")
        parser.add_argument("--granularity", choices=GRANULARITIES, default=SUMMARY)
        parser.add_argument("--actor", default=None)

    def handle(self, *args, **options):
        try:
            company = Company.objects.get(slug=options["company"])
        except Company.DoesNotExist:
            raise CommandError(f"No company with slug {options['company']!r}") from None

        try:
            result = generate_report(
                company,
                options["report_type"],
                options["start"],
                options["end"],
                options["granularity"],
                actor_id=options["actor"],
            )
        except ValidationError as exc:
            raise CommandError("; ".join(exc.messages)) from exc
        except (StoreError, ReportGenerationError) as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(json.dumps(result.to_dict(), indent=2))
        for warning in result.warnings:
            self.stderr.write(self.style.WARNING(warning))
