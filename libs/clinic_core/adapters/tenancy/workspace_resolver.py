from __future__ import annotations

import uuid
from typing import Any

from clinic_core.core.domain.services.tenant_resolver import TenantResolver
from plugins.django_interface.models import WorkspaceMember


class DjangoTenantResolver(TenantResolver):
    """Primeiro vínculo ativo do usuário (WorkspaceMember) define o workspace."""

    def resolve(self, user: Any) -> uuid.UUID | None:
        if user is None or not getattr(user, "is_authenticated", False):
            return None
        return (
            WorkspaceMember.objects
            .filter(user_id=user.pk, is_active=True)
            .order_by("created_at")
            .values_list("workspace_id", flat=True)
            .first()
        )
