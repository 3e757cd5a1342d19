"""
Extrator da Tkambio.
https://tkambio.com/
"""

from decimal import Decimal
from typing import Optional

from playwright.async_api import Page

from config.providers import TKAMBIO_CONFIG, ProviderConfig
from rate_collector.pipeline.parser import Quote
from rate_collector.scrapers.base import BaseExtractor


class TkambioExtractor(BaseExtractor):
    """
    Extrator para Tkambio.
    Conteúdo dinâmico; se os rótulos não aparecerem, usa os primeiros
    textos curtos que contêm um número 3.xx.
    """

    # Textos maiores que isso são blocos, não o valor da taxa
    SHORT_TEXT_LIMIT = 50

    def __init__(self, config: Optional[ProviderConfig] = None, **kwargs):
        super().__init__(config or TKAMBIO_CONFIG, **kwargs)

    async def read_quote(self, page: Page) -> Optional[Quote]:
        text = await self._body_text(page)

        quote = self.parser.find_labeled_quote(text)
        if quote:
            return quote

        values = []
        for line in text.split("\n"):
            line = line.strip()
            if line and len(line) < self.SHORT_TEXT_LIMIT:
                values.extend(
                    v for v in self.parser.find_rates(line)
                    if Decimal(3) <= v < Decimal(4)
                )
            if len(values) >= 2:
                break

        if len(values) < 2:
            return None
        first, second = values[0], values[1]
        return min(first, second), max(first, second)
