"""Fábrica da aplicação FastAPI."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.settings import Settings, get_settings
from rate_collector.api.deps import AppState
from rate_collector.api.routes import router
from rate_collector.api.security import SlidingWindowLimiter, add_security_headers
from rate_collector.collector import RateCollector
from rate_collector.core.exceptions import (
    CycleExhaustedError,
    RateCollectorError,
    StorageError,
    ValidationError,
)
from rate_collector.scheduler import RateScheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Ciclo de vida: coletor e agendador sobem e descem com a app."""
    settings = app.state._pending_settings
    collector = app.state._pending_collector or RateCollector(settings=settings)
    scheduler = RateScheduler(collector, settings=settings)

    app.state.app_state = AppState(settings=settings, collector=collector, scheduler=scheduler)

    if app.state._start_scheduler:
        scheduler.start()

    yield

    await scheduler.stop()
    await collector.close()


def create_app(
    settings: Optional[Settings] = None,
    collector: Optional[RateCollector] = None,
    start_scheduler: bool = True,
) -> FastAPI:
    """
    Cria e configura a aplicação.

    Args:
        settings: Configurações (None = get_settings())
        collector: Coletor já montado (testes)
        start_scheduler: Sobe o agendador no startup
    """
    import rate_collector

    settings = settings or (collector.settings if collector else get_settings())

    app = FastAPI(
        title="Rate Collector API",
        description="Comparador de taxas de câmbio USD/PEN",
        version=rate_collector.__version__,
        lifespan=lifespan,
    )

    # Lidos pelo lifespan
    app.state._pending_settings = settings
    app.state._pending_collector = collector
    app.state._start_scheduler = start_scheduler

    if settings.rate_limit_enabled:
        window = settings.rate_limit_window_minutes * 60
        app.state.api_limiter = SlidingWindowLimiter(settings.api_rate_limit, window)
        app.state.refresh_limiter = SlidingWindowLimiter(settings.refresh_rate_limit, window)
    else:
        app.state.api_limiter = None
        app.state.refresh_limiter = None

    app.middleware("http")(add_security_headers)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api")

    @app.exception_handler(RateCollectorError)
    async def rate_collector_exception_handler(request: Request, exc: RateCollectorError):
        if isinstance(exc, ValidationError) and exc.field == "provider":
            return JSONResponse(
                status_code=404,
                content={
                    "error": exc.message,
                    "valid_providers": exc.details.get("valid_providers", []),
                },
            )

        status_map = {
            ValidationError: 400,
            CycleExhaustedError: 503,
            StorageError: 500,
        }
        status = next(
            (code for cls, code in status_map.items() if isinstance(exc, cls)),
            500,
        )
        return JSONResponse(
            status_code=status,
            content={"error": type(exc).__name__, "detail": exc.message},
        )

    return app
