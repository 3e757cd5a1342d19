"""
Proteções HTTP da API: limite de requisições por IP e cabeçalhos de segurança.
"""

import math
import time
from collections import defaultdict, deque
from typing import Callable, Optional

from fastapi import HTTPException, Request

from config.logging_config import LoggerMixin

API_LIMIT_MESSAGE = "Muitas requisições deste IP. Tente novamente em alguns minutos."
REFRESH_LIMIT_MESSAGE = "Limite de requisições excedido para este endpoint."

CONTENT_SECURITY_POLICY = "; ".join([
    "default-src 'self'",
    "style-src 'self' 'unsafe-inline' cdn.jsdelivr.net",
    "script-src 'self' 'unsafe-inline' cdn.jsdelivr.net",
    "img-src 'self' data: https:",
    "connect-src 'self'",
    "font-src 'self' data: cdn.jsdelivr.net",
    "object-src 'none'",
    "media-src 'self'",
    "frame-src 'none'",
])

SECURITY_HEADERS: dict[str, str] = {
    "Content-Security-Policy": CONTENT_SECURITY_POLICY,
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Frame-Options": "SAMEORIGIN",
}


class SlidingWindowLimiter(LoggerMixin):
    """
    Limite de requisições por chave (IP do cliente) em janela deslizante.
    Ao contrário de um limitador de scraping, não espera: recusa.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = defaultdict(deque)

    def hit(self, key: str) -> Optional[float]:
        """
        Registra uma requisição.

        Returns:
            None se permitida, senão segundos até liberar uma vaga
        """
        now = self._clock()
        hits = self._hits[key]
        while hits and hits[0] <= now - self.window_seconds:
            hits.popleft()

        if len(hits) >= self.max_requests:
            retry_after = hits[0] + self.window_seconds - now
            self.logger.warning(
                "Limite de requisições atingido",
                client=key,
                limit=self.max_requests,
                retry_after=round(retry_after, 1),
            )
            return retry_after

        hits.append(now)
        return None

    def remaining(self, key: str) -> int:
        return max(self.max_requests - len(self._hits.get(key, ())), 0)

    def reset(self) -> None:
        self._hits.clear()


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _enforce(request: Request, limiter: Optional[SlidingWindowLimiter], message: str) -> None:
    if limiter is None:
        return

    retry_after = limiter.hit(client_key(request))
    if retry_after is not None:
        raise HTTPException(
            status_code=429,
            detail=message,
            headers={"Retry-After": str(max(math.ceil(retry_after), 1))},
        )


def limit_api(request: Request) -> None:
    """Limite geral de /api."""
    _enforce(request, request.app.state.api_limiter, API_LIMIT_MESSAGE)


def limit_refresh(request: Request) -> None:
    """Limite mais estrito para /api/refresh, que abre um browser."""
    _enforce(request, request.app.state.refresh_limiter, REFRESH_LIMIT_MESSAGE)


async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response
