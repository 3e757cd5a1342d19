"""
Exceções do coletor de taxas.

Cada classe declara em ``_context`` quais argumentos nomeados viram
atributos e entram em ``details`` (nome do atributo -> chave no details).
Valores None não entram no details.
"""

from typing import Any, ClassVar, Optional

RAW_DATA_LIMIT = 200


class RateCollectorError(Exception):
    """Base de todas as exceções do sistema."""

    _context: ClassVar[dict[str, str]] = {}

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = dict(details or {})

        unknown = set(context) - set(self._context)
        if unknown:
            raise TypeError(f"{type(self).__name__}: argumentos inesperados {sorted(unknown)}")

        for attr, key in self._context.items():
            value = context.get(attr)
            setattr(self, attr, value)
            if value is not None:
                self.details[key] = self._detail_value(attr, value)

    def _detail_value(self, attr: str, value: Any) -> Any:
        return value

    def __str__(self) -> str:
        parts = [self.message]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Formato usado nos logs estruturados."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
        }


# Coleta

class ScraperError(RateCollectorError):
    _context = {"provider_id": "provider_id", "url": "url"}


class ExtractionError(ScraperError):
    """
    Falha dura de um extrator (página quebrou, rede, etc).
    Fica restrita ao provedor; o orquestrador apenas registra.
    """


class NavigationError(ExtractionError):
    """Timeout ou erro de rede ao abrir a página do provedor."""

    _context = {**ExtractionError._context, "timeout_ms": "timeout_ms"}

    def __init__(self, message: str = "Erro de navegação", **kwargs: Any):
        super().__init__(message, **kwargs)


class SessionError(ScraperError):
    """Não foi possível iniciar o browser compartilhado do ciclo."""

    def __init__(self, message: str = "Falha ao iniciar sessão do browser", **kwargs: Any):
        super().__init__(message, **kwargs)


class CycleExhaustedError(RateCollectorError):
    """Ciclo esgotou todas as tentativas sem obter uma sessão utilizável."""

    _context = {"attempts": "attempts"}

    def __init__(self, message: str = "Tentativas esgotadas", **kwargs: Any):
        super().__init__(message, **kwargs)


class ParsingError(RateCollectorError):
    """Texto extraído não é uma taxa válida."""

    _context = {"field": "field", "raw_data": "raw_data"}

    def _detail_value(self, attr: str, value: Any) -> Any:
        if attr == "raw_data":
            return str(value)[:RAW_DATA_LIMIT]
        return value


# Persistência

class StorageError(RateCollectorError):
    _context = {"storage_type": "storage_type", "path": "path"}


class DatabaseError(StorageError):
    """Falha no SQLite do histórico."""


class FileStorageError(StorageError):
    """Falha ao exportar CSV/Parquet."""


# Entrada

class ValidationError(RateCollectorError):
    """Parâmetro inválido vindo da API, CLI ou calculadora."""

    _context = {"field": "field", "value": "invalid_value"}

    def _detail_value(self, attr: str, value: Any) -> Any:
        return str(value) if attr == "value" else value
