"""
Extrator da Kambista.
https://kambista.com/
"""

from typing import Optional

from playwright.async_api import Page

from config.providers import KAMBISTA_CONFIG, ProviderConfig
from rate_collector.pipeline.parser import Quote
from rate_collector.scrapers.base import BaseExtractor


class KambistaExtractor(BaseExtractor):
    """Taxas aparecem no HTML como "Compra 3.745" / "Venta 3.765"."""

    def __init__(self, config: Optional[ProviderConfig] = None, **kwargs):
        super().__init__(config or KAMBISTA_CONFIG, **kwargs)

    async def read_quote(self, page: Page) -> Optional[Quote]:
        text = await self._body_text(page)
        return self.parser.find_labeled_quote(text)
