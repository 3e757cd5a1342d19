"""
Configuração das casas de câmbio suportadas.
Define URLs, timeouts de navegação e faixas plausíveis de cada provedor.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class ProviderStatus(str, Enum):
    """Status de um provedor."""
    ACTIVE = "active"
    DEVELOPMENT = "development"
    DISABLED = "disabled"


class ScrapingMethod(str, Enum):
    """Método de scraping utilizado."""
    PLAYWRIGHT = "playwright"
    API = "api"


@dataclass(frozen=True)
class ProviderConfig:
    """Configuração completa de um provedor de taxas."""

    id: str
    display_name: str
    url: str

    status: ProviderStatus = ProviderStatus.ACTIVE
    method: ScrapingMethod = ScrapingMethod.PLAYWRIGHT

    # Timeouts (ms), cada extrator respeita o seu independente do ciclo
    navigation_timeout_ms: int = 60000
    settle_delay_ms: int = 1500

    # Faixa plausível de negócio para USD/PEN
    min_rate: Decimal = Decimal("2.5")
    max_rate: Decimal = Decimal("5.0")

    def is_plausible(self, value: Decimal) -> bool:
        """Indica se o valor está dentro da faixa plausível do provedor."""
        return self.min_rate <= value <= self.max_rate

    @property
    def is_enabled(self) -> bool:
        return self.status in (ProviderStatus.ACTIVE, ProviderStatus.DEVELOPMENT)


# =============================================================================
# CASAS DE CÂMBIO ONLINE
# =============================================================================

KAMBISTA_CONFIG = ProviderConfig(
    id="kambista",
    display_name="Kambista",
    url="https://kambista.com/",
    navigation_timeout_ms=60000,
    settle_delay_ms=1500,
)

REXTIE_CONFIG = ProviderConfig(
    id="rextie",
    display_name="Rextie",
    url="https://www.rextie.com/",
    navigation_timeout_ms=60000,
    settle_delay_ms=1500,
)

TKAMBIO_CONFIG = ProviderConfig(
    id="tkambio",
    display_name="Tkambio",
    url="https://tkambio.com/",
    navigation_timeout_ms=60000,
    settle_delay_ms=2500,
    min_rate=Decimal("3.0"),
    max_rate=Decimal("4.0"),
)

# Site lento, dados chegam via payload do Next.js
TUCAMBISTA_CONFIG = ProviderConfig(
    id="tucambista",
    display_name="Tucambista",
    url="https://tucambista.pe/",
    navigation_timeout_ms=120000,
    settle_delay_ms=8000,
    min_rate=Decimal("3.0"),
    max_rate=Decimal("4.0"),
)


# =============================================================================
# REFERÊNCIAS DE MERCADO
# =============================================================================

# Preço spot interbancário, sem compra/venda separados
BLOOMBERG_CONFIG = ProviderConfig(
    id="bloomberg",
    display_name="Bloomberg Línea (Spot)",
    url="https://www.bloomberglinea.com/quote/USDPEN:CUR/",
    navigation_timeout_ms=90000,
    settle_delay_ms=3000,
    min_rate=Decimal("3.0"),
    max_rate=Decimal("5.0"),
)

WESTERN_UNION_CONFIG = ProviderConfig(
    id="western_union",
    display_name="Western Union Peru",
    url="https://www.westernunionperu.pe/cambiodemoneda",
    navigation_timeout_ms=90000,
    settle_delay_ms=3000,
    min_rate=Decimal("3.0"),
    max_rate=Decimal("4.0"),
)

# Desabilitado: a consulta da SUNAT demora demais para o ciclo
SUNAT_CONFIG = ProviderConfig(
    id="sunat",
    display_name="SUNAT",
    url="https://e-consulta.sunat.gob.pe/cl-at-ittipcam/tcS01Alias",
    status=ProviderStatus.DISABLED,
    navigation_timeout_ms=40000,
    settle_delay_ms=5000,
)


# =============================================================================
# REGISTRO DE PROVEDORES
# =============================================================================

PROVIDERS_CONFIG: dict[str, ProviderConfig] = {
    "kambista": KAMBISTA_CONFIG,
    "rextie": REXTIE_CONFIG,
    "tkambio": TKAMBIO_CONFIG,
    "tucambista": TUCAMBISTA_CONFIG,
    "bloomberg": BLOOMBERG_CONFIG,
    "western_union": WESTERN_UNION_CONFIG,
    "sunat": SUNAT_CONFIG,
}


def get_provider_config(provider_id: str) -> ProviderConfig:
    """
    Retorna configuração de um provedor.

    Raises:
        ValueError: Se provedor não encontrado
    """
    if provider_id not in PROVIDERS_CONFIG:
        raise ValueError(f"Provedor não encontrado: {provider_id}")
    return PROVIDERS_CONFIG[provider_id]


def get_active_providers() -> list[ProviderConfig]:
    """Retorna lista de provedores habilitados."""
    return [
        config for config in PROVIDERS_CONFIG.values()
        if config.is_enabled
    ]


def get_display_name(provider_id: str) -> str:
    """Nome de exibição do provedor (ou o próprio ID se desconhecido)."""
    config = PROVIDERS_CONFIG.get(provider_id)
    return config.display_name if config else provider_id
