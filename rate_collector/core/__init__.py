"""
Módulo core: modelos de dados, exceções, tipos e constantes.
"""

from rate_collector.core.models import (
    RateObservation,
    RatesSnapshot,
    ExtractorOutcome,
    CycleResult,
    CycleOutcome,
    RateSummary,
    ConversionResult,
)
from rate_collector.core.exceptions import (
    RateCollectorError,
    ScraperError,
    ExtractionError,
    NavigationError,
    SessionError,
    CycleExhaustedError,
    ParsingError,
    StorageError,
    DatabaseError,
    FileStorageError,
    ValidationError,
)
from rate_collector.core.types import (
    ExtractionStatus,
    SnapshotStatus,
    CalculatorAction,
    ProviderID,
    VALID_PROVIDERS,
)
from rate_collector.core.constants import (
    BUY_PATTERNS,
    SELL_PATTERNS,
    PENDING_MESSAGE,
    NO_RATES_MESSAGE,
)

__all__ = [
    # Models
    "RateObservation",
    "RatesSnapshot",
    "ExtractorOutcome",
    "CycleResult",
    "CycleOutcome",
    "RateSummary",
    "ConversionResult",
    # Exceptions
    "RateCollectorError",
    "ScraperError",
    "ExtractionError",
    "NavigationError",
    "SessionError",
    "CycleExhaustedError",
    "ParsingError",
    "StorageError",
    "DatabaseError",
    "FileStorageError",
    "ValidationError",
    # Types
    "ExtractionStatus",
    "SnapshotStatus",
    "CalculatorAction",
    "ProviderID",
    "VALID_PROVIDERS",
    # Constants
    "BUY_PATTERNS",
    "SELL_PATTERNS",
    "PENDING_MESSAGE",
    "NO_RATES_MESSAGE",
]
