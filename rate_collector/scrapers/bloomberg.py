"""
Extrator da Bloomberg Línea.
https://www.bloomberglinea.com/quote/USDPEN:CUR/

Publica apenas o preço spot interbancário; compra/venta são derivadas.
"""

from decimal import Decimal
from typing import Optional

from playwright.async_api import Page

from config.providers import BLOOMBERG_CONFIG, ProviderConfig
from rate_collector.core.constants import SPOT_PATTERN
from rate_collector.pipeline.parser import Quote
from rate_collector.scrapers.base import BaseExtractor


FUSION_SPOT_SCRIPT = """
() => (window.Fusion && window.Fusion.globalContent)
    ? window.Fusion.globalContent.PX_LAST ?? null
    : null
"""

DATA_VALUE_SELECTOR = ".data-value.font_sm.font_medium"


class BloombergExtractor(BaseExtractor):
    """
    Extrator para Bloomberg Línea.

    Ordem de tentativa do spot:
    1. window.Fusion.globalContent.PX_LAST
    2. primeiro elemento .data-value
    3. "3.7450 PEN" no texto
    """

    def __init__(self, config: Optional[ProviderConfig] = None, **kwargs):
        super().__init__(config or BLOOMBERG_CONFIG, **kwargs)

    async def read_quote(self, page: Page) -> Optional[Quote]:
        spot = await self._read_spot(page)
        if spot is None:
            return None

        if not self.config.is_plausible(spot):
            self.logger.warning("Spot fora da faixa", spot=str(spot))
            return None

        return self.parser.quote_from_spot(spot)

    async def _read_spot(self, page: Page) -> Optional[Decimal]:
        raw = await page.evaluate(FUSION_SPOT_SCRIPT)
        if raw is not None:
            spot = self.parser.try_parse(raw)
            if spot is not None:
                return spot

        element = await page.query_selector(DATA_VALUE_SELECTOR)
        if element:
            spot = self.parser.try_parse((await element.inner_text()).strip())
            if spot is not None:
                return spot

        text = await self._body_text(page)
        values = self.parser.find_rates(text, SPOT_PATTERN)
        return values[0] if values else None
