"""
Módulo de scrapers: extração das taxas de cada casa de câmbio.
Arquitetura em plugins - cada provedor tem seu extrator.
"""

from rate_collector.scrapers.base import BaseExtractor
from rate_collector.scrapers.session import BrowserSession
from rate_collector.scrapers.kambista import KambistaExtractor
from rate_collector.scrapers.rextie import RextieExtractor
from rate_collector.scrapers.tkambio import TkambioExtractor
from rate_collector.scrapers.tucambista import TucambistaExtractor
from rate_collector.scrapers.bloomberg import BloombergExtractor
from rate_collector.scrapers.western_union import WesternUnionExtractor
from rate_collector.scrapers.sunat import SunatExtractor

# Registry de extratores (SUNAT registrado, mas desabilitado na config)
EXTRACTOR_REGISTRY: dict[str, type[BaseExtractor]] = {
    "kambista": KambistaExtractor,
    "rextie": RextieExtractor,
    "tkambio": TkambioExtractor,
    "tucambista": TucambistaExtractor,
    "bloomberg": BloombergExtractor,
    "western_union": WesternUnionExtractor,
    "sunat": SunatExtractor,
}

from rate_collector.scrapers.manager import ScrapeOrchestrator, build_extractors  # noqa: E402
from rate_collector.scrapers.retry import RetryController  # noqa: E402

__all__ = [
    "BaseExtractor",
    "BrowserSession",
    "KambistaExtractor",
    "RextieExtractor",
    "TkambioExtractor",
    "TucambistaExtractor",
    "BloombergExtractor",
    "WesternUnionExtractor",
    "SunatExtractor",
    "EXTRACTOR_REGISTRY",
    "ScrapeOrchestrator",
    "RetryController",
    "build_extractors",
]
