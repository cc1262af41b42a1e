import uuid
from dataclasses import dataclass
from datetime import date

from clinic_core.core.application.cqrs import CommandDTO

from financial_engine.core.application.dtos.sale_dtos import CreateSaleDTO


@dataclass(frozen=True, slots=True)
class CreateSaleCommand(CommandDTO):
    workspace_id: uuid.UUID
    payload: CreateSaleDTO


@dataclass(frozen=True, slots=True)
class DeleteSaleCommand(CommandDTO):
    workspace_id: uuid.UUID
    sale_id: uuid.UUID


@dataclass(frozen=True, slots=True)
class SettleInstallmentCommand(CommandDTO):
    workspace_id: uuid.UUID
    installment_id: uuid.UUID


@dataclass(frozen=True, slots=True)
class MarkOverdueInstallmentsCommand(CommandDTO):
    reference_date: date
