from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal

from financial_engine.core.domain.services.cashflow_aggregator import Receivable, SplitMix
from financial_engine.core.domain.services.commission_calculator import SellerSale
from financial_engine.core.domain.services.revenue_engine import (
    CollaboratorCost,
    PendingReceivable,
    RevenueSale,
)


class FinancialReportRepository(ABC):
    """Leituras agregadas para fluxo de caixa e dashboard (somente consulta)."""

    # ▶ fluxo de caixa
    @abstractmethod
    def receivables(self, workspace_id: uuid.UUID, start: date, end: date) -> list[Receivable]:
        """Parcelas de venda com vencimento em [start, end]."""
        ...

    @abstractmethod
    def sales_total(self, workspace_id: uuid.UUID, start: date, end: date) -> Decimal:
        """Soma de total_amount das vendas com sale_date em [start, end]."""
        ...

    @abstractmethod
    def split_mix(self, workspace_id: uuid.UUID, start: date, end: date) -> list[SplitMix]:
        ...

    # ▶ dashboard
    @abstractmethod
    def revenue_sales(self, workspace_id: uuid.UUID, start: date, end: date) -> list[RevenueSale]:
        ...

    @abstractmethod
    def session_status_counts(self, workspace_id: uuid.UUID) -> dict[str, int]:
        ...

    @abstractmethod
    def collaborator_costs(self, workspace_id: uuid.UUID) -> list[CollaboratorCost]:
        ...

    @abstractmethod
    def quote_statuses(self, workspace_id: uuid.UUID, start: date, end: date) -> list[str]:
        ...

    @abstractmethod
    def pending_receivables(self, workspace_id: uuid.UUID, from_date: date) -> list[PendingReceivable]:
        ...

    @abstractmethod
    def patient_counts(self, workspace_id: uuid.UUID, start: date, end: date) -> tuple[int, int]:
        """(novos no período, total)."""
        ...

    # ▶ comissões
    @abstractmethod
    def seller_sales(
        self,
        workspace_id: uuid.UUID,
        start: date | None = None,
        end: date | None = None,
        seller_id: uuid.UUID | None = None,
    ) -> list[SellerSale]:
        """Vendas com vendedor atribuído, mais recentes primeiro."""
        ...
