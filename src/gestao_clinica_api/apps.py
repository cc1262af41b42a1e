from django.apps import AppConfig


class GestaoClinicaConfig(AppConfig):
    name = "gestao_clinica_api"
    verbose_name = "Gestão Clínica API"

    def ready(self):
        from django.conf import settings

        # ─── DI container ───────────────────────────────────────────
        from financial_engine.adapters.config.composition_root import (
            setup_di_container_from_settings as build_financial_container,
        )

        build_financial_container(settings)
