from __future__ import annotations

import uuid
from decimal import Decimal

from financial_engine.core.domain.repositories.workspace_settings_repository import (
    FinancialSettings,
    WorkspaceSettingsRepository,
)
from plugins.django_interface.models import WorkspaceSettings as WorkspaceSettingsModel


class WorkspaceSettingsRepoImpl(WorkspaceSettingsRepository):
    """Campos nulos no workspace herdam os defaults do settings.py."""

    def __init__(self, default_tax_rate: Decimal, default_card_receiving_days: int):
        self.default_tax_rate = Decimal(default_tax_rate)
        self.default_card_receiving_days = default_card_receiving_days

    def get(self, workspace_id: uuid.UUID) -> FinancialSettings:
        row = WorkspaceSettingsModel.objects.filter(workspace_id=workspace_id).first()
        tax_rate = row.tax_rate if row and row.tax_rate is not None else self.default_tax_rate
        days = (
            row.default_card_receiving_days
            if row and row.default_card_receiving_days is not None
            else self.default_card_receiving_days
        )
        return FinancialSettings(tax_rate=Decimal(tax_rate), default_card_receiving_days=days)
