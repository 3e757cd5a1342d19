"""
Módulo de agregação: buffer do ciclo e estado atual das taxas.
"""

from rate_collector.aggregation.buffer import AggregationBuffer
from rate_collector.aggregation.state import RatesState

__all__ = [
    "AggregationBuffer",
    "RatesState",
]
