from __future__ import annotations

from datetime import date

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from financial_engine.adapters.config.composition_root import setup_di_container_from_settings
from financial_engine.core.application.commands.sale_commands import MarkOverdueInstallmentsCommand


class Command(BaseCommand):
    """
    Varredura de inadimplência: parcelas PENDING com vencimento anterior
    à data de referência passam a OVERDUE. Idempotente; pode rodar em cron.
    """

    help = "Marca como vencidas as parcelas pendentes com vencimento anterior à data de referência."

    def add_arguments(self, parser):
        parser.add_argument(
            "--date",
            dest="reference_date",
            help="Data de referência (YYYY-MM-DD). Padrão: hoje.",
        )

    def handle(self, *args, **options):
        raw = options.get("reference_date")
        try:
            reference = date.fromisoformat(raw) if raw else timezone.localdate()
        except ValueError as exc:
            raise CommandError(f"Data inválida: {raw!r}") from exc

        container = setup_di_container_from_settings(settings)
        event = container.command_bus().dispatch(MarkOverdueInstallmentsCommand(reference_date=reference))

        self.stdout.write(
            self.style.SUCCESS(f"✅ {event.count} parcela(s) marcadas como vencidas (referência {reference})")
        )
