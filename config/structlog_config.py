import logging
import os
import sys

import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder

# Bibliotecas barulhentas em DEBUG
QUIET_LOGGERS = ("django.db.backends", "django.utils.autoreload", "urllib3")


def configure_logging(
    level: str | None = None,
    json_logs: bool = bool(os.getenv("JSON_LOGS", "")),
) -> None:
    """
    Configura structlog + logging:
     - Em `json_logs` ativa JSONRenderer para produção.
     - Caso contrário, usa ConsoleRenderer colorido para dev.
     - Nível vem de `level` ou da variável LOG_LEVEL (padrão INFO).
    Deve ser chamado ANTES de qualquer import que crie loggers.
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    # Pré-processors comuns a stdlib e structlog
    pre_chain = [
        structlog.contextvars.merge_contextvars,     # request_id, workspace_id
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    final_processor = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *pre_chain,
            CallsiteParameterAdder(
                parameters=[
                    CallsiteParameter.MODULE,
                    CallsiteParameter.FUNC_NAME,
                    CallsiteParameter.LINENO,
                ]
            ),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,  # ponte para stdlib
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=final_processor,
        foreign_pre_chain=pre_chain,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
