"""
Tradução das exceções de domínio para respostas HTTP.

Registrado em REST_FRAMEWORK["EXCEPTION_HANDLER"]; o que não for
erro conhecido segue para o handler padrão do DRF (e daí para 500).
"""
import structlog
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from financial_engine.core.domain.events.exceptions import (
    ConflictError,
    FinancialEngineError,
    NotFoundError,
    ValidationFailedError,
)

logger = structlog.get_logger(__name__)

STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ValidationFailedError, status.HTTP_400_BAD_REQUEST),
)


def _status_for(exc: FinancialEngineError) -> int:
    for cls, code in STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return code
    return status.HTTP_400_BAD_REQUEST


def financial_exception_handler(exc, context):
    if isinstance(exc, FinancialEngineError):
        http_status = _status_for(exc)
        logger.warning("request.rejected", code=exc.code, status=http_status, error=exc.message)
        return Response({"error": exc.message, "code": exc.code, **exc.details}, status=http_status)

    if isinstance(exc, PydanticValidationError):
        errors = [
            {"field": ".".join(str(p) for p in e["loc"]), "message": e["msg"]}
            for e in exc.errors(include_url=False)
        ]
        logger.info("request.invalid_payload", errors=len(errors))
        return Response(
            {"error": "Dados inválidos", "code": "invalid_payload", "details": errors},
            status=status.HTTP_400_BAD_REQUEST,
        )

    return drf_exception_handler(exc, context)
