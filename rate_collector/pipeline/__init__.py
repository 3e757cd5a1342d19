"""
Módulo de pipeline: parsing de taxas e cálculos de comparação.
"""

from rate_collector.pipeline.parser import RateParser
from rate_collector.pipeline.calculator import RateCalculator

__all__ = [
    "RateParser",
    "RateCalculator",
]
