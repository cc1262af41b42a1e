from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True, slots=True)
class FinancialSettings:
    tax_rate: Decimal
    default_card_receiving_days: int


class WorkspaceSettingsRepository(ABC):
    @abstractmethod
    def get(self, workspace_id: uuid.UUID) -> FinancialSettings:
        """Configuração efetiva (valores do workspace ou defaults globais)."""
        ...
