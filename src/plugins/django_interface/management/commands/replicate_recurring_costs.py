from __future__ import annotations

from datetime import date

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from financial_engine.adapters.config.composition_root import setup_di_container_from_settings
from financial_engine.core.application.commands.cost_commands import ReplicateRecurringCostsCommand


class Command(BaseCommand):
    """
    Lança como custo avulso as ocorrências vencidas dos custos fixos
    recorrentes de todos os workspaces. Idempotente por data de referência.
    """

    help = "Replica os custos fixos recorrentes com ocorrência até a data de referência."

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
        res = container.command_bus().dispatch(ReplicateRecurringCostsCommand(reference_date=reference))

        for item in res.details:
            self.stdout.write(f"  • {item.description}: {item.fixedValue} em {item.paymentDate}")
        self.stdout.write(
            self.style.SUCCESS(f"✅ {res.processedCount} custo(s) recorrente(s) lançado(s) (referência {reference})")
        )
