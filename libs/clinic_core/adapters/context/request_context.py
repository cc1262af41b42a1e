import contextvars
import uuid

import structlog

_current_request = contextvars.ContextVar("current_request", default=None)


def set_current_request(request):
    """
    Guarda o request corrente e vincula um request_id aos logs do structlog.
    Reaproveita o header X-Request-ID quando o proxy já o envia.
    """
    request_id = request.META.get("HTTP_X_REQUEST_ID") or uuid.uuid4().hex
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        path=request.path,
        method=request.method,
    )
    return _current_request.set(request)


def get_current_request():
    """Retrieve request stored by RequestContextMiddleware."""
    try:
        return _current_request.get()
    except LookupError:
        return None


def bind_workspace(workspace_id) -> None:
    """Acrescenta o workspace resolvido ao contexto de log da requisição."""
    structlog.contextvars.bind_contextvars(workspace_id=str(workspace_id))


def reset_request(token):
    """Reset context variable to previous state."""
    structlog.contextvars.clear_contextvars()
    _current_request.reset(token)
