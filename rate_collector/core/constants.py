"""
Constantes e padrões regex para extração de taxas de câmbio.
"""

import re
from decimal import Decimal
from typing import Final


# =============================================================================
# PADRÕES REGEX PARA EXTRAÇÃO DE TAXAS
# =============================================================================

# Rótulo seguido de número: "Compra: 3.745", "Venta S/ 3.7650"
BUY_PATTERNS: Final[list[re.Pattern]] = [
    re.compile(r"Compra[:\s]*(?:S/\.?)?\s*(\d+[.,]\d{2,4})", re.IGNORECASE),
    re.compile(r"TC[:\s]*Compra[:\s]*(\d+[.,]\d{2,4})", re.IGNORECASE),
]

SELL_PATTERNS: Final[list[re.Pattern]] = [
    re.compile(r"Venta[:\s]*(?:S/\.?)?\s*(\d+[.,]\d{2,4})", re.IGNORECASE),
    re.compile(r"TC[:\s]*Venta[:\s]*(\d+[.,]\d{2,4})", re.IGNORECASE),
]

# Número solto com cara de taxa USD/PEN (3.xxx)
BARE_RATE_PATTERN: Final[re.Pattern] = re.compile(r"\b([34][.,]\d{2,4})\b")

# Número precedido de "S/" (ex: "s/ 3.745")
SOLES_RATE_PATTERN: Final[re.Pattern] = re.compile(r"s/\.?\s*(\d+[.,]\d{3,4})", re.IGNORECASE)

# Preço spot seguido da moeda (ex: "3.7450 PEN")
SPOT_PATTERN: Final[re.Pattern] = re.compile(r"([3-4][.,]\d{2,4})\s*PEN")

# Payload do Next.js do Tucambista
TUCAMBISTA_PAYLOAD_PATTERN: Final[re.Pattern] = re.compile(
    r'"entity"\s*:\s*"tucambista"[^}]*"buyExchangeRate"\s*:\s*"?([\d.]+)"?'
    r'[^}]*"sellExchangeRate"\s*:\s*"?([\d.]+)"?',
    re.IGNORECASE,
)


# =============================================================================
# PARÂMETROS DE NEGÓCIO
# =============================================================================

# Bloomberg publica só o spot; compra/venta = spot -/+ este valor
SPOT_HALF_SPREAD: Final[Decimal] = Decimal("0.005")

# Casas decimais das taxas exibidas
RATE_DECIMAL_PLACES: Final[int] = 4


# =============================================================================
# MENSAGENS DE ESTADO
# =============================================================================

PENDING_MESSAGE: Final[str] = "Aguardando taxas de câmbio..."
NO_RATES_MESSAGE: Final[str] = "Nenhuma taxa obtida de nenhuma fonte"
NO_DATA_MESSAGE: Final[str] = "Nenhum dado disponível ainda"


# =============================================================================
# HEADERS HTTP PADRÃO
# =============================================================================

DEFAULT_USER_AGENT: Final[str] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS: Final[dict[str, str]] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "es-PE,es;q=0.9,en-US;q=0.8,en;q=0.7",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}
