"""
Configuração do coletor via variáveis de ambiente (prefixo RATES_) ou .env.
Cobre ciclo de coleta, retries, agendamento, histórico e API.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configurações principais do sistema."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="RATES_",
        extra="ignore",
    )

    # Ambiente
    env: Literal["development", "production", "testing"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False

    # Paths
    data_path: Path = Field(default=Path("./data"))
    log_path: Path = Field(default=Path("./logs"))
    db_name: str = "exchange_rates.db"

    # Playwright
    headless: bool = True
    browser_launch_timeout: int = Field(default=90000, ge=10000, le=180000)

    # Ciclo de coleta progressiva
    scrape_budget_seconds: float = Field(default=30.0, gt=0, le=300)
    min_viable_results: int = Field(default=2, ge=1, le=10)
    extractor_hard_timeout_seconds: float = Field(default=120.0, gt=0, le=600)

    # Retries (tentativas = max_retries + 1)
    max_retries: int = Field(default=3, ge=0, le=10)
    backoff_base_seconds: float = Field(default=1.0, gt=0, le=30)
    backoff_cap_seconds: float = Field(default=10.0, gt=0, le=300)

    # Agendamento
    scrape_interval_minutes: int = Field(default=5, ge=1, le=1440)
    history_retention_days: int = Field(default=30, ge=1, le=365)
    cleanup_hour: int = Field(default=3, ge=0, le=23)

    # API
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=3006, ge=1, le=65535)
    admin_api_key: Optional[str] = None
    allowed_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3006", "http://127.0.0.1:3006"]
    )

    # Limite de requisições por IP (janela deslizante)
    rate_limit_enabled: bool = True
    rate_limit_window_minutes: int = Field(default=15, ge=1, le=1440)
    api_rate_limit: int = Field(default=100, ge=1)
    refresh_rate_limit: int = Field(default=10, ge=1)

    # Calculadora (USD de referência para o KPI de economia)
    reference_amount: float = Field(default=1000.0, gt=0)

    @field_validator("data_path", "log_path", mode="after")
    @classmethod
    def ensure_path_exists(cls, v: Path) -> Path:
        """Garante que os diretórios existam."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    @property
    def db_path(self) -> Path:
        """Caminho completo do banco SQLite."""
        return self.data_path / self.db_name

    @property
    def max_attempts(self) -> int:
        """Total de tentativas por ciclo (primeira + retries)."""
        return self.max_retries + 1


@lru_cache
def get_settings() -> Settings:
    """Configurações do processo (lidas uma vez)."""
    return Settings()
