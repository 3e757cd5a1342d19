"""
Sessão de browser compartilhada por todos os extratores de um ciclo.
Um único Chromium por ciclo; cada extrator abre e fecha a sua página.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
)

from config.logging_config import LoggerMixin
from config.settings import Settings, get_settings
from rate_collector.core.constants import DEFAULT_HEADERS, DEFAULT_USER_AGENT
from rate_collector.core.exceptions import SessionError


class BrowserSession(LoggerMixin):
    """Browser headless com configurações anti-detecção."""

    LAUNCH_ARGS = [
        "--disable-blink-features=AutomationControlled",
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--disable-accelerated-2d-canvas",
        "--disable-gpu",
        "--window-size=1920,1080",
    ]

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    @property
    def is_open(self) -> bool:
        return self._context is not None

    async def start(self) -> None:
        """
        Inicia Playwright, browser e contexto.

        Raises:
            SessionError: Se o browser não puder ser iniciado
        """
        if self._context is not None:
            return

        try:
            self._playwright = await async_playwright().start()

            self._browser = await self._playwright.chromium.launch(
                headless=self.settings.headless,
                args=self.LAUNCH_ARGS,
                timeout=self.settings.browser_launch_timeout,
            )

            self._context = await self._browser.new_context(
                user_agent=DEFAULT_USER_AGENT,
                viewport={"width": 1920, "height": 1080},
                locale="es-PE",
                timezone_id="America/Lima",
                java_script_enabled=True,
                accept_downloads=False,
                extra_http_headers=DEFAULT_HEADERS,
            )

            # Esconde webdriver
            await self._context.add_init_script(
                "Object.defineProperty(navigator, 'webdriver', { get: () => undefined });"
            )

        except PlaywrightError as e:
            await self.close()
            raise SessionError(f"Falha ao iniciar browser: {e}", cause=e)

        self.logger.debug("Browser iniciado", headless=self.settings.headless)

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        """Abre uma página nova e garante que ela seja fechada."""
        if self._context is None:
            raise SessionError("Sessão não iniciada")

        page = await self._context.new_page()
        try:
            yield page
        finally:
            try:
                await page.close()
            except PlaywrightError as e:
                self.logger.debug("Erro ao fechar página", error=str(e))

    async def close(self) -> None:
        """Fecha browser e libera recursos."""
        try:
            if self._context:
                await self._context.close()
            if self._browser:
                await self._browser.close()
            if self._playwright:
                await self._playwright.stop()
        except PlaywrightError as e:
            self.logger.warning("Erro fechando browser", error=str(e))
        finally:
            self._context = None
            self._browser = None
            self._playwright = None
