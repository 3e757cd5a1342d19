"""
Parser de texto extraído das páginas das casas de câmbio.
Converte strings de taxa em Decimal e localiza pares compra/venta.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Union

from config.logging_config import LoggerMixin
from rate_collector.core.constants import (
    BARE_RATE_PATTERN,
    BUY_PATTERNS,
    RATE_DECIMAL_PLACES,
    SELL_PATTERNS,
    SPOT_HALF_SPREAD,
)
from rate_collector.core.exceptions import ParsingError


Quote = tuple[Decimal, Decimal]

_QUANTUM = Decimal(1).scaleb(-RATE_DECIMAL_PLACES)


class RateParser(LoggerMixin):
    """
    Parser de taxas.
    Cada extrator lê o texto da página e usa este parser para
    transformar o que encontrou em um par (compra, venta).
    """

    def parse_rate(self, rate_raw: Union[str, float, Decimal]) -> Decimal:
        """
        Converte uma taxa bruta para Decimal com 4 casas.

        Args:
            rate_raw: Valor como "3.745", "3,7450", "S/ 3.745" ou float

        Returns:
            Taxa como Decimal

        Raises:
            ParsingError: Se o valor não for numérico ou não for positivo
        """
        if rate_raw is None or rate_raw == "":
            raise ParsingError("Taxa vazia", field="rate")

        if isinstance(rate_raw, (int, float, Decimal)):
            cleaned = str(rate_raw)
        else:
            cleaned = self._normalize_rate_format(rate_raw)

        try:
            value = Decimal(cleaned)
        except InvalidOperation as e:
            raise ParsingError(
                f"Não foi possível extrair taxa de: {rate_raw}",
                field="rate",
                raw_data=str(rate_raw),
                cause=e,
            )

        if not value.is_finite() or value <= 0:
            raise ParsingError(
                f"Taxa não positiva: {rate_raw}",
                field="rate",
                raw_data=str(rate_raw),
            )

        return value.quantize(_QUANTUM)

    def _normalize_rate_format(self, rate_str: str) -> str:
        """
        Remove prefixos de moeda e troca vírgula decimal por ponto.

        Exemplos:
            "S/ 3.745" -> "3.745"
            "3,7450" -> "3.7450"
        """
        cleaned = re.sub(r"(?i)s/\.?", "", rate_str).strip()
        return cleaned.replace(",", ".")

    def try_parse(self, rate_raw) -> Optional[Decimal]:
        """Como parse_rate, mas retorna None em vez de levantar."""
        try:
            return self.parse_rate(rate_raw)
        except ParsingError as e:
            self.logger.debug("Taxa descartada", raw=str(rate_raw)[:50], error=e.message)
            return None

    def find_labeled_quote(
        self,
        text: str,
        buy_patterns: Iterable[re.Pattern] = BUY_PATTERNS,
        sell_patterns: Iterable[re.Pattern] = SELL_PATTERNS,
    ) -> Optional[Quote]:
        """
        Procura "Compra ... X" e "Venta ... Y" no texto.

        Returns:
            (compra, venta) ou None se algum dos dois faltar
        """
        if not text:
            return None

        buy = self._first_match(text, buy_patterns)
        sell = self._first_match(text, sell_patterns)

        if buy is None or sell is None:
            return None

        return buy, sell

    def _first_match(self, text: str, patterns: Iterable[re.Pattern]) -> Optional[Decimal]:
        for pattern in patterns:
            match = pattern.search(text)
            if match:
                value = self.try_parse(match.group(1))
                if value is not None:
                    return value
        return None

    def find_rates(
        self,
        text: str,
        pattern: re.Pattern = BARE_RATE_PATTERN,
    ) -> list[Decimal]:
        """Todos os números com cara de taxa, na ordem em que aparecem."""
        if not text:
            return []

        values = []
        for match in pattern.finditer(text):
            value = self.try_parse(match.group(1))
            if value is not None:
                values.append(value)
        return values

    def pair_from_values(self, values: Iterable[Decimal]) -> Optional[Quote]:
        """
        Monta um par a partir dos dois primeiros valores distintos.
        O menor vira compra e o maior vira venta.
        """
        distinct: list[Decimal] = []
        for value in values:
            if value not in distinct:
                distinct.append(value)
            if len(distinct) == 2:
                return min(distinct), max(distinct)
        return None

    def quote_from_spot(self, spot: Decimal) -> Quote:
        """Deriva compra/venta de um preço spot (spot -/+ meio spread)."""
        return (
            (spot - SPOT_HALF_SPREAD).quantize(_QUANTUM),
            (spot + SPOT_HALF_SPREAD).quantize(_QUANTUM),
        )
