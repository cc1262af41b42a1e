from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Any


class TenantResolver(ABC):
    """
    Resolve o workspace ativo de um usuário autenticado.

    O resultado é usado como filtro de escopo em todas as consultas;
    nenhuma verificação de autorização é feita aqui.
    """

    @abstractmethod
    def resolve(self, user: Any) -> uuid.UUID | None:
        """Retorna o id do workspace ativo ou None quando não houver vínculo."""
        ...
