import uuid
from dataclasses import dataclass

from clinic_core.core.application.cqrs import CommandDTO

from financial_engine.core.application.dtos.quote_dtos import ConvertQuoteDTO, CreateQuoteDTO, UpdateQuoteDTO


@dataclass(frozen=True, slots=True)
class CreateQuoteCommand(CommandDTO):
    workspace_id: uuid.UUID
    payload: CreateQuoteDTO


@dataclass(frozen=True, slots=True)
class UpdateQuoteCommand(CommandDTO):
    workspace_id: uuid.UUID
    quote_id: uuid.UUID
    payload: UpdateQuoteDTO


@dataclass(frozen=True, slots=True)
class DeleteQuoteCommand(CommandDTO):
    workspace_id: uuid.UUID
    quote_id: uuid.UUID


@dataclass(frozen=True, slots=True)
class ConvertQuoteCommand(CommandDTO):
    workspace_id: uuid.UUID
    quote_id: uuid.UUID
    payload: ConvertQuoteDTO
