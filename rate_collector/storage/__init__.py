"""
Módulo de storage: histórico de taxas.
SQLite para consultas, CSV e Parquet para exportação.
"""

from rate_collector.storage.base import BaseStorage, StorageType
from rate_collector.storage.sqlite_storage import SQLiteStorage
from rate_collector.storage.file_storage import CSVStorage, ParquetStorage
from rate_collector.storage.manager import StorageManager

__all__ = [
    "BaseStorage",
    "StorageType",
    "SQLiteStorage",
    "CSVStorage",
    "ParquetStorage",
    "StorageManager",
]
