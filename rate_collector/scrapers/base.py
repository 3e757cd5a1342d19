"""
Classe base para extratores de casas de câmbio.
Cada provedor implementa apenas a leitura da cotação na página aberta.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from playwright.async_api import (
    Error as PlaywrightError,
    Page,
    TimeoutError as PlaywrightTimeout,
)

from config.logging_config import LoggerMixin
from config.providers import ProviderConfig
from rate_collector.core.exceptions import ExtractionError, NavigationError
from rate_collector.core.models import RateObservation
from rate_collector.pipeline.parser import Quote, RateParser


class BaseExtractor(ABC, LoggerMixin):
    """
    Classe base abstrata para todos os extratores.

    O contrato é extract(session): retorna a observação, None quando a
    página carregou mas não havia taxa válida, ou levanta ExtractionError.
    """

    def __init__(self, config: ProviderConfig, parser: Optional[RateParser] = None):
        """
        Args:
            config: Configuração do provedor
            parser: Parser de taxas (compartilhável entre extratores)
        """
        self.config = config
        self.parser = parser or RateParser()

    @property
    def provider_id(self) -> str:
        return self.config.id

    # MÉTODO ABSTRATO (cada provedor implementa)

    @abstractmethod
    async def read_quote(self, page: Page) -> Optional[Quote]:
        """
        Lê compra/venta da página já carregada.

        Returns:
            (compra, venta) ou None se nada reconhecível
        """

    # MÉTODOS COMUNS

    async def extract(self, session) -> Optional[RateObservation]:
        """
        Abre a página do provedor na sessão e extrai a cotação.

        Raises:
            ExtractionError: Falha de navegação ou erro do browser
        """
        self.logger.debug("Extraindo", provider=self.provider_id, url=self.config.url)

        try:
            async with session.page() as page:
                await self._navigate(page)
                await page.wait_for_timeout(self.config.settle_delay_ms)
                quote = await self.read_quote(page)

        except PlaywrightTimeout as e:
            raise NavigationError(
                f"Timeout navegando para {self.config.display_name}",
                provider_id=self.provider_id,
                url=self.config.url,
                timeout_ms=self.config.navigation_timeout_ms,
                cause=e,
            )
        except PlaywrightError as e:
            raise ExtractionError(
                f"Erro do browser em {self.config.display_name}",
                provider_id=self.provider_id,
                url=self.config.url,
                cause=e,
            )

        if quote is None:
            self.logger.warning("Nenhuma taxa encontrada", provider=self.provider_id)
            return None

        return self._build_observation(*quote)

    async def _navigate(self, page: Page) -> None:
        """Navega até a URL respeitando o timeout do provedor."""
        response = await page.goto(
            self.config.url,
            wait_until="domcontentloaded",
            timeout=self.config.navigation_timeout_ms,
        )

        if response is not None and response.status >= 400:
            raise NavigationError(
                f"Status {response.status}",
                provider_id=self.provider_id,
                url=self.config.url,
            )

    def _build_observation(self, buy: Decimal, sell: Decimal) -> Optional[RateObservation]:
        """Aplica a faixa plausível do provedor e cria a observação."""
        if not (self.config.is_plausible(buy) and self.config.is_plausible(sell)):
            self.logger.warning(
                "Taxa fora da faixa plausível",
                provider=self.provider_id,
                buy=str(buy),
                sell=str(sell),
                range=f"{self.config.min_rate}-{self.config.max_rate}",
            )
            return None

        observation = RateObservation(
            provider=self.provider_id,
            buy_rate=buy,
            sell_rate=sell,
        )

        self.logger.info(
            "Taxa extraída",
            provider=self.provider_id,
            buy=str(buy),
            sell=str(sell),
        )
        return observation

    async def _body_text(self, page: Page) -> str:
        """Texto visível do body."""
        return await page.inner_text("body")
