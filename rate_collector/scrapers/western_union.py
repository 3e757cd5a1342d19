"""
Extrator da Western Union Peru.
https://www.westernunionperu.pe/cambiodemoneda
"""

import re
from decimal import Decimal
from typing import Optional

from playwright.async_api import Page

from config.providers import WESTERN_UNION_CONFIG, ProviderConfig
from rate_collector.pipeline.parser import Quote
from rate_collector.scrapers.base import BaseExtractor


_BUY = re.compile(r"Compra[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE)
_SELL = re.compile(r"Venta[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE)

INPUT_VALUES_SCRIPT = "els => els.map(e => e.value)"


class WesternUnionExtractor(BaseExtractor):
    """
    Extrator para Western Union.
    Texto visível primeiro; senão, os valores já preenchidos na calculadora.
    """

    def __init__(self, config: Optional[ProviderConfig] = None, **kwargs):
        super().__init__(config or WESTERN_UNION_CONFIG, **kwargs)

    async def read_quote(self, page: Page) -> Optional[Quote]:
        text = await self._body_text(page)

        quote = self.parser.find_labeled_quote(text, [_BUY], [_SELL])
        if quote:
            buy, sell = quote
            # Venta abaixo da compra indica que pegamos outro número
            if self.config.is_plausible(buy) and sell > buy:
                return quote

        values = await page.eval_on_selector_all('input[type="text"]', INPUT_VALUES_SCRIPT)
        rates = []
        for value in values or []:
            rate = self.parser.try_parse((value or "").replace(",", ""))
            if rate is not None and Decimal("3.0") <= rate <= Decimal("4.0"):
                rates.append(rate)

        if len(rates) < 2:
            return None
        return min(rates[0], rates[1]), max(rates[0], rates[1])
