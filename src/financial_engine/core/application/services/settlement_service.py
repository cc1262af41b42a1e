from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

import structlog

from financial_engine.adapters.observability.metrics import FEE_RULE_FALLBACKS, INSTALLMENTS_SCHEDULED
from financial_engine.core.application.dtos.sale_dtos import PaymentSplitDTO
from financial_engine.core.domain.entities.sale_entity import InstallmentStub, PaymentSplitEntity
from financial_engine.core.domain.repositories.workspace_settings_repository import WorkspaceSettingsRepository
from financial_engine.core.domain.services.fee_rule_resolver import FeeRuleResolver
from financial_engine.core.domain.services.installment_scheduler import InstallmentScheduler
from financial_engine.core.domain.services.split_validator import PaymentSplitValidator

logger = structlog.get_logger(__name__)


class SettlementService:
    """
    Caminho único de liquidação, usado na criação de venda e na conversão de orçamento:

        validar splits → resolver taxa (cartão) → gerar cronograma

    Nada é persistido aqui; o cronograma fica em `split.schedule` e o
    repositório grava tudo numa única transação.
    """

    def __init__(
        self,
        validator: PaymentSplitValidator,
        resolver: FeeRuleResolver,
        scheduler: InstallmentScheduler,
        settings_repo: WorkspaceSettingsRepository,
    ):
        self.validator = validator
        self.resolver = resolver
        self.scheduler = scheduler
        self.settings_repo = settings_repo

    @staticmethod
    def build_splits(dtos: Iterable[PaymentSplitDTO]) -> list[PaymentSplitEntity]:
        return [
            PaymentSplitEntity(
                id=uuid.uuid4(),
                payment_method=dto.payment_method,
                amount=dto.amount,
                installments=dto.installments,
                card_operator=dto.card_operator,
                stubs=[
                    InstallmentStub(amount=d.amount, due_date=d.due_date, notes=d.notes)
                    for d in dto.installment_details
                ],
            )
            for dto in dtos
        ]

    def settle(
        self,
        workspace_id: uuid.UUID,
        total_amount: Decimal,
        base_date: date,
        splits: list[PaymentSplitEntity],
    ) -> int:
        """
        Preenche `schedule` de cada split. Retorna quantos splits de cartão
        caíram no fallback de taxa zero.
        """
        self.validator.validate(total_amount, splits)

        settings = self.settings_repo.get(workspace_id)
        fallbacks = 0
        for split in splits:
            fee = None
            if split.payment_method.is_card:
                fee = self.resolver.resolve(
                    workspace_id,
                    split.payment_method.card_type,
                    split.installments,
                    split.card_operator,
                    default_receiving_days=settings.default_card_receiving_days,
                )
                if fee.is_fallback:
                    fallbacks += 1
                    FEE_RULE_FALLBACKS.labels(card_type=split.payment_method.card_type.value).inc()
            split.schedule = self.scheduler.schedule(split, base_date, fee)
            INSTALLMENTS_SCHEDULED.labels(payment_method=split.payment_method.value).inc(len(split.schedule))

        logger.debug(
            "settlement.scheduled",
            workspace_id=str(workspace_id),
            splits=len(splits),
            installments=sum(len(s.schedule) for s in splits),
            fee_fallbacks=fallbacks,
        )
        return fallbacks
