"""
Extrator da Rextie.
https://www.rextie.com/
"""

from decimal import Decimal
from typing import Optional

from playwright.async_api import Page

from config.providers import REXTIE_CONFIG, ProviderConfig
from rate_collector.core.constants import SOLES_RATE_PATTERN
from rate_collector.pipeline.parser import Quote
from rate_collector.scrapers.base import BaseExtractor


class RextieExtractor(BaseExtractor):
    """
    Extrator para Rextie.

    A página mistura as taxas da Rextie com as da SUNAT e de bancos.
    Os rótulos "Compra"/"Venta" ficam em uma linha e o valor "S/ 3.745"
    em uma das linhas seguintes.
    """

    # Linhas após o rótulo onde o valor pode estar
    LOOKAHEAD_LINES = 4
    # Sem seção explícita da Rextie, só as primeiras linhas contam
    HEADER_LINES = 50

    def __init__(self, config: Optional[ProviderConfig] = None, **kwargs):
        super().__init__(config or REXTIE_CONFIG, **kwargs)

    async def read_quote(self, page: Page) -> Optional[Quote]:
        text = await self._body_text(page)
        lines = [line.strip() for line in text.split("\n") if line.strip()]

        quote = self._quote_from_sections(lines)
        if quote:
            return quote

        # Fallback: primeiro par de valores "S/ x.xxx" na faixa estreita
        values = [
            v for v in self.parser.find_rates(text, SOLES_RATE_PATTERN)
            if Decimal("3.2") < v < Decimal("3.5")
        ]
        return self.parser.pair_from_values(values)

    def _quote_from_sections(self, lines: list[str]) -> Optional[Quote]:
        buy: Optional[Decimal] = None
        sell: Optional[Decimal] = None
        in_rextie_section = False

        for i, line in enumerate(lines):
            lower = line.lower()

            if "rextie" in lower and "sunat" not in lower and "banco" not in lower:
                in_rextie_section = True

            if not in_rextie_section and i >= self.HEADER_LINES:
                continue

            if buy is None and "compra" in lower:
                buy = self._value_near(lines, i)

            # Venta só depois de compra, e diferente dela
            if buy is not None and sell is None and "venta" in lower:
                sell = self._value_near(lines, i, exclude=buy)

            if buy is not None and sell is not None:
                return buy, sell

        return None

    def _value_near(
        self,
        lines: list[str],
        index: int,
        exclude: Optional[Decimal] = None,
    ) -> Optional[Decimal]:
        for candidate in lines[index:index + self.LOOKAHEAD_LINES]:
            match = SOLES_RATE_PATTERN.search(candidate)
            if not match:
                continue
            value = self.parser.try_parse(match.group(1))
            if value is None or not Decimal(3) < value < Decimal(4):
                continue
            if value != exclude:
                return value
        return None
