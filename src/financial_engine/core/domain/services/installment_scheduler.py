from __future__ import annotations

import uuid
from datetime import date, timedelta
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal

from financial_engine.core.domain.entities.enums import InstallmentStatus
from financial_engine.core.domain.entities.sale_entity import (
    InstallmentStub,
    PaymentInstallmentEntity,
    PaymentSplitEntity,
)
from financial_engine.core.domain.services.fee_rule_resolver import FeeResolution

CENT = Decimal("0.01")


def allocate_evenly(amount: Decimal, parts: int) -> list[Decimal]:
    """
    Divide `amount` em `parts` cotas de centavos; a última absorve o
    resto do arredondamento, então a soma é sempre exata.
    """
    if parts < 1:
        raise ValueError("parts deve ser >= 1")
    share = (amount / parts).quantize(CENT, rounding=ROUND_DOWN)
    shares = [share] * parts
    shares[-1] = amount - share * (parts - 1)
    return shares


def fee_note(fee_percentage: Decimal, gross_amount: Decimal) -> str:
    return f"Taxa de {fee_percentage:.2f}% aplicada. Valor bruto: R$ {gross_amount:.2f}"


class InstallmentScheduler:
    """
    Função total (split, data base, taxa) → cronograma completo.

    Precedência: valores explícitos do detalhe (stub) sempre vencem os derivados.

    Não-cartão:  líquido = valor do stub ou split/N; vencimento = data do stub ou None.
    Cartão:      bruto = valor do stub ou split/N
                 taxa  = bruto × pct/100
                 líquido = bruto − taxa
                 recebimento = base + dias de recebimento + i × intervalo
    """

    def __init__(self, interval_days: int = 30) -> None:
        self.interval_days = interval_days

    def schedule(
        self,
        split: PaymentSplitEntity,
        base_date: date,
        fee: FeeResolution | None = None,
    ) -> list[PaymentInstallmentEntity]:
        n = split.installments
        stubs = list(split.stubs[:n]) + [InstallmentStub()] * max(0, n - len(split.stubs))
        shares = allocate_evenly(split.amount, n)

        if split.payment_method.is_card:
            if fee is None:
                raise ValueError("split de cartão exige FeeResolution")
            return [
                self._card_installment(split, i, stub, shares[i], base_date, fee)
                for i, stub in enumerate(stubs)
            ]

        return [
            PaymentInstallmentEntity(
                id=uuid.uuid4(),
                payment_split_id=split.id,
                installment_number=i + 1,
                amount=stub.amount if stub.amount is not None else shares[i],
                gross_amount=stub.amount if stub.amount is not None else shares[i],
                fee_amount=Decimal("0"),
                due_date=stub.due_date,
                status=InstallmentStatus.PENDING,
                notes=stub.notes,
            )
            for i, stub in enumerate(stubs)
        ]

    def receivable_date(self, base_date: date, receiving_days: int, index: int) -> date:
        return base_date + timedelta(days=receiving_days + index * self.interval_days)

    def _card_installment(
        self,
        split: PaymentSplitEntity,
        index: int,
        stub: InstallmentStub,
        default_gross: Decimal,
        base_date: date,
        fee: FeeResolution,
    ) -> PaymentInstallmentEntity:
        gross = stub.amount if stub.amount is not None else default_gross
        # líquido arredondado ao centavo; a taxa é o complemento, então bruto = líquido + taxa
        net = (gross * (Decimal(100) - fee.fee_percentage) / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)
        fee_amount = gross - net
        due = stub.due_date or self.receivable_date(base_date, fee.receiving_days, index)
        return PaymentInstallmentEntity(
            id=uuid.uuid4(),
            payment_split_id=split.id,
            installment_number=index + 1,
            amount=net,
            gross_amount=gross,
            fee_amount=fee_amount,
            due_date=due,
            status=InstallmentStatus.PENDING,
            notes=fee_note(fee.fee_percentage, gross) if fee.applies_fee else stub.notes,
        )
