"""
Configuração de logging estruturado usando structlog.
Eventos do structlog passam pelo logging padrão, então console e
arquivo recebem as mesmas mensagens (JSON em produção, colorido em dev).
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import structlog
from structlog.typing import Processor

LOG_FILENAME = "rate_collector.log"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 5

# Bibliotecas que poluem o log em DEBUG
NOISY_LOGGERS = ("aiosqlite", "asyncio", "httpx", "uvicorn.access")

_HANDLER_MARK = "_rate_collector_handler"


def setup_logging(
    level: str = "INFO",
    log_path: Optional[Path] = None,
    json_format: bool = False,
) -> structlog.stdlib.BoundLogger:
    """
    Configura o sistema de logging.
    Pode ser chamada mais de uma vez; os handlers anteriores são trocados.

    Args:
        level: Nível de log (DEBUG, INFO, WARNING, ERROR)
        log_path: Diretório do arquivo de log (None = só console)
        json_format: Se True, usa formato JSON (produção)

    Returns:
        Logger configurado
    """
    log_level = getattr(logging, level.upper())

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if json_format:
        console_renderer: Processor = structlog.processors.JSONRenderer()
    else:
        console_renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )

    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in [h for h in root.handlers if getattr(h, _HANDLER_MARK, False)]:
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_formatter(shared_processors, console_renderer))
    _install(root, console)

    # Arquivo sempre em JSON, uma linha por evento
    if log_path:
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path / LOG_FILENAME,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(
            _formatter(
                shared_processors,
                structlog.processors.JSONRenderer(),
                structlog.processors.format_exc_info,
            )
        )
        _install(root, file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    return structlog.get_logger("rate_collector")


def _formatter(
    shared_processors: list[Processor],
    renderer: Processor,
    *extra: Processor,
) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *extra,
            renderer,
        ],
    )


def _install(root: logging.Logger, handler: logging.Handler) -> None:
    setattr(handler, _HANDLER_MARK, True)
    root.addHandler(handler)


def get_logger(name: str = "rate_collector", **context) -> structlog.stdlib.BoundLogger:
    """
    Retorna um logger com contexto.

    Args:
        name: Nome do logger
        **context: Contexto adicional para bind
    """
    logger = structlog.get_logger(name)
    if context:
        logger = logger.bind(**context)
    return logger


def bind_cycle(cycle_id: str) -> None:
    """
    Associa o ID do ciclo a todos os logs da task atual.
    Tasks criadas depois herdam o contexto.
    """
    structlog.contextvars.bind_contextvars(cycle_id=cycle_id)


def clear_cycle() -> None:
    structlog.contextvars.unbind_contextvars("cycle_id")


class LoggerMixin:
    """Mixin para adicionar logging a classes."""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        """Retorna logger com nome da classe."""
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger
