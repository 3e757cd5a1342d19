"""
Extrator da Tucambista.
https://tucambista.pe/

Site em Next.js: as taxas chegam no payload self.__next_f, não no HTML.
"""

import re
from typing import Optional

from playwright.async_api import Page

from config.providers import TUCAMBISTA_CONFIG, ProviderConfig
from rate_collector.core.constants import TUCAMBISTA_PAYLOAD_PATTERN
from rate_collector.pipeline.parser import Quote
from rate_collector.scrapers.base import BaseExtractor


NEXT_PAYLOAD_SCRIPT = """
() => (typeof self !== 'undefined' && Array.isArray(self.__next_f))
    ? JSON.stringify(self.__next_f)
    : null
"""

_VISIBLE_BUY = re.compile(r"compra[:\s]*(3\.\d{1,4})", re.IGNORECASE)
_VISIBLE_SELL = re.compile(r"venta[:\s]*(3\.\d{1,4})", re.IGNORECASE)


class TucambistaExtractor(BaseExtractor):
    """Extrator para Tucambista (payload do Next.js, depois texto visível)."""

    def __init__(self, config: Optional[ProviderConfig] = None, **kwargs):
        super().__init__(config or TUCAMBISTA_CONFIG, **kwargs)

    async def read_quote(self, page: Page) -> Optional[Quote]:
        payload = await page.evaluate(NEXT_PAYLOAD_SCRIPT)

        if payload:
            quote = self._quote_from_payload(payload)
            if quote:
                return quote
            self.logger.debug("Payload sem taxas da tucambista", size=len(payload))

        text = await self._body_text(page)
        return self.parser.find_labeled_quote(text, [_VISIBLE_BUY], [_VISIBLE_SELL])

    def _quote_from_payload(self, payload: str) -> Optional[Quote]:
        # O payload vem como string JSON escapada dentro de outro JSON
        match = TUCAMBISTA_PAYLOAD_PATTERN.search(payload.replace('\\"', '"'))
        if not match:
            return None

        buy = self.parser.try_parse(match.group(1))
        sell = self.parser.try_parse(match.group(2))
        if buy is None or sell is None:
            return None
        return buy, sell
