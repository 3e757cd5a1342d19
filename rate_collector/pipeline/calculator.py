"""
Comparação de taxas e calculadora de câmbio.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from config.logging_config import LoggerMixin
from rate_collector.core.exceptions import ValidationError
from rate_collector.core.models import ConversionResult, RateObservation, RateSummary
from rate_collector.core.types import CalculatorAction


class RateCalculator(LoggerMixin):
    """
    Calcula melhores taxas, economia potencial e conversões.

    Do ponto de vista do cliente:
    - comprar USD (tenho PEN) usa a venta da casa; menor é melhor
    - vender USD (tenho USD) usa a compra da casa; maior é melhor
    """

    def __init__(self, reference_amount: Union[int, float, Decimal] = 1000, decimal_places: int = 2):
        """
        Args:
            reference_amount: USD usados no KPI de economia
            decimal_places: Casas decimais para valores em moeda
        """
        self.reference_amount = Decimal(str(reference_amount))
        self._quantize_exp = Decimal(10) ** -decimal_places

    def _money(self, value: Decimal) -> Decimal:
        return value.quantize(self._quantize_exp, rounding=ROUND_HALF_UP)

    def summarize(self, rates: list[RateObservation]) -> Optional[RateSummary]:
        """
        KPIs do painel: melhores/piores taxas, spread médio e economia.

        Returns:
            None se não houver taxas
        """
        if not rates:
            return None

        best_buy = max(rates, key=lambda r: r.buy_rate)
        best_sell = min(rates, key=lambda r: r.sell_rate)
        worst_buy = min(rates, key=lambda r: r.buy_rate)
        worst_sell = max(rates, key=lambda r: r.sell_rate)

        amount = self.reference_amount
        savings_buying = amount * worst_sell.sell_rate - amount * best_sell.sell_rate
        savings_selling = amount * best_buy.buy_rate - amount * worst_buy.buy_rate

        average_spread = sum((r.spread for r in rates), Decimal(0)) / len(rates)

        return RateSummary(
            best_buy=best_buy,
            best_sell=best_sell,
            worst_buy=worst_buy,
            worst_sell=worst_sell,
            average_spread=average_spread.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP),
            reference_amount=amount,
            savings_buying_usd=self._money(savings_buying),
            savings_selling_usd=self._money(savings_selling),
            providers_count=len(rates),
        )

    def convert(
        self,
        amount: Union[int, float, Decimal],
        action: CalculatorAction,
        rates: list[RateObservation],
    ) -> Optional[ConversionResult]:
        """
        Converte um valor usando a melhor casa disponível.

        Args:
            amount: PEN (action=buy) ou USD (action=sell)
            action: Operação do cliente
            rates: Taxas disponíveis

        Returns:
            Resultado da conversão ou None se não houver taxas

        Raises:
            ValidationError: Se o valor não for positivo
        """
        amount = Decimal(str(amount))
        if amount <= 0:
            raise ValidationError("Valor deve ser positivo", field="amount", value=amount)

        if not rates:
            return None

        action = CalculatorAction(action)

        if action == CalculatorAction.BUY:
            best = min(rates, key=lambda r: r.sell_rate)
            worst = max(rates, key=lambda r: r.sell_rate)
            rate, worst_rate = best.sell_rate, worst.sell_rate

            result = amount / rate
            # USD extras valorizados pela taxa média entre as duas casas
            usd_difference = amount / rate - amount / worst_rate
            savings = usd_difference * (rate + worst_rate) / 2
        else:
            best = max(rates, key=lambda r: r.buy_rate)
            worst = min(rates, key=lambda r: r.buy_rate)
            rate, worst_rate = best.buy_rate, worst.buy_rate

            result = amount * rate
            savings = amount * rate - amount * worst_rate

        conversion = ConversionResult(
            action=action,
            amount=amount,
            result=self._money(result),
            best_provider=best.provider,
            applied_rate=rate,
            worst_provider=worst.provider,
            worst_rate=worst_rate,
            savings=self._money(savings),
        )

        self.logger.debug(
            "Conversão calculada",
            action=action.value,
            amount=str(amount),
            provider=best.provider,
            result=str(conversion.result),
        )
        return conversion
