"""
Tipos customizados e enumerações do sistema.
"""

from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, get_args

from pydantic import Field


# ENUMERAÇÕES

class ExtractionStatus(str, Enum):
    """Desfecho de um extrator dentro de um ciclo."""

    SUCCESS = "success"
    NO_RESULTS = "no_results"     # Página carregou, sem taxa válida
    FAILED = "failed"
    TIMEOUT = "timeout"

    @property
    def is_fault(self) -> bool:
        """Indica falha dura (não apenas ausência de dados)."""
        return self in (ExtractionStatus.FAILED, ExtractionStatus.TIMEOUT)


class SnapshotStatus(str, Enum):
    """Estado do snapshot de taxas servido à API."""

    EMPTY = "empty"               # Nenhum dado ainda
    PENDING = "pending"           # Ciclo rodando, nenhuma fonte respondeu
    LIVE = "live"                 # Taxas frescas em memória
    FALLBACK = "fallback"         # Taxas vindas do banco
    ERROR = "error"               # Ciclo esgotou tentativas


class CalculatorAction(str, Enum):
    """Operação da calculadora, do ponto de vista do cliente."""

    BUY = "buy"                   # Tenho PEN, quero USD (usa venta)
    SELL = "sell"                 # Tenho USD, quero PEN (usa compra)


# TIPOS ANOTADOS

# IDs dos provedores suportados
ProviderID = Literal[
    "kambista",
    "rextie",
    "tkambio",
    "tucambista",
    "bloomberg",
    "western_union",
    "sunat",
]

VALID_PROVIDERS: tuple[str, ...] = get_args(ProviderID)

# Taxa de câmbio (sempre positiva)
Rate = Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=4)]


def is_valid_provider(provider_id: str) -> bool:
    """Verifica se o ID pertence ao conjunto fixo de provedores."""
    return provider_id in VALID_PROVIDERS
