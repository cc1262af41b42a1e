from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from financial_engine.core.domain.entities.sale_entity import PaymentSplitEntity
from financial_engine.core.domain.events.exceptions import (
    IncompleteScheduleError,
    ReconciliationError,
    ValidationFailedError,
)

DEFAULT_TOLERANCE = Decimal("0.01")


class PaymentSplitValidator:
    """
    Portão de validação executado antes de qualquer persistência:

      (a) Σ split.amount == total (± tolerância absoluta)
      (b) cada split traz exatamente `installments` detalhes de parcela
    """

    def __init__(self, tolerance: Decimal = DEFAULT_TOLERANCE) -> None:
        self.tolerance = tolerance

    def validate(self, total_amount: Decimal, splits: Sequence[PaymentSplitEntity]) -> None:
        for idx, split in enumerate(splits):
            if split.installments < 1:
                raise ValidationFailedError(
                    "Número de parcelas deve ser maior ou igual a 1", split_index=idx
                )
            if split.amount <= 0:
                raise ValidationFailedError(
                    "Valor do pagamento deve ser maior que zero", split_index=idx
                )

        computed = sum((s.amount for s in splits), Decimal("0"))
        if abs(computed - total_amount) > self.tolerance:
            raise ReconciliationError(computed=computed, expected=total_amount)

        for idx, split in enumerate(splits):
            if len(split.stubs) != split.installments:
                raise IncompleteScheduleError(
                    split_index=idx, expected=split.installments, received=len(split.stubs)
                )
