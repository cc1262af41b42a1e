from __future__ import annotations

from decimal import Decimal
from typing import Any


class FinancialEngineError(Exception):
    """Classe base para todas as exceções do motor financeiro."""
    code = "financial_error"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


# ─── 400 ────────────────────────────────────────────────────────────
class ValidationFailedError(FinancialEngineError):
    """Entrada rejeitada antes de qualquer escrita."""
    code = "validation_error"


class ReconciliationError(ValidationFailedError):
    """
    Soma dos splits diverge do total da venda além da tolerância.
    Carrega os dois valores para que a divergência seja acionável.
    """
    code = "reconciliation_error"

    def __init__(self, computed: Decimal, expected: Decimal) -> None:
        super().__init__(
            f"A soma dos pagamentos (R$ {computed:.2f}) deve ser igual "
            f"ao total da venda (R$ {expected:.2f})",
            computed_total=f"{computed:.2f}",
            expected_total=f"{expected:.2f}",
        )
        self.computed = computed
        self.expected = expected


class IncompleteScheduleError(ValidationFailedError):
    """Split com quantidade de detalhes de parcela diferente do número de parcelas."""
    code = "incomplete_schedule"

    def __init__(self, split_index: int, expected: int, received: int) -> None:
        super().__init__(
            "Cada forma de pagamento deve ter todas as datas de recebimento informadas",
            split_index=split_index,
            expected_installments=expected,
            received_details=received,
        )


# ─── 404 ────────────────────────────────────────────────────────────
class NotFoundError(FinancialEngineError):
    """Recurso inexistente ou fora do workspace do usuário."""
    code = "not_found"


# ─── 409 ────────────────────────────────────────────────────────────
class ConflictError(FinancialEngineError):
    code = "conflict"


class TerminalStateError(ConflictError):
    """Operação proibida sobre orçamento aceito e convertido."""
    code = "terminal_state"


class InstallmentAlreadySettledError(ConflictError):
    """Parcela não está mais pendente (outra requisição já a liquidou)."""
    code = "installment_not_pending"
