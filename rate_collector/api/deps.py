"""Injeção de dependências das rotas."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from config.settings import Settings
from rate_collector.collector import RateCollector
from rate_collector.core.types import VALID_PROVIDERS, is_valid_provider
from rate_collector.scheduler import RateScheduler


@dataclass
class AppState:
    """Estado da aplicação, anexado a app.state no lifespan."""

    settings: Settings
    collector: RateCollector
    scheduler: Optional[RateScheduler] = None


def get_app_state(request: Request) -> AppState:
    return request.app.state.app_state


def get_collector(request: Request) -> RateCollector:
    return request.app.state.app_state.collector


def get_app_settings(request: Request) -> Settings:
    return request.app.state.app_state.settings


def require_admin_key(
    x_api_key: Optional[str] = Header(None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Exige X-API-Key quando admin_api_key está configurada."""
    if settings.admin_api_key and x_api_key != settings.admin_api_key:
        raise HTTPException(
            status_code=403,
            detail="Não autorizado. É necessária uma API key válida.",
        )


def valid_provider(provider: str) -> str:
    """Parâmetro de rota: provedor do conjunto fixo, senão 404."""
    if not is_valid_provider(provider):
        raise HTTPException(
            status_code=404,
            detail={
                "error": f"Provedor não encontrado: {provider}",
                "valid_providers": list(VALID_PROVIDERS),
            },
        )
    return provider
