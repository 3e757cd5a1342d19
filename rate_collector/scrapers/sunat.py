"""
Extrator da SUNAT (taxa oficial).
https://e-consulta.sunat.gob.pe/cl-at-ittipcam/tcS01Alias

Desabilitado por padrão: a página demora demais para o ciclo.
"""

from typing import Optional

from playwright.async_api import Page

from config.providers import SUNAT_CONFIG, ProviderConfig
from rate_collector.pipeline.parser import Quote
from rate_collector.scrapers.base import BaseExtractor


class SunatExtractor(BaseExtractor):
    """Aguarda a tabela de taxas e lê "Compra S/ 3.745" do texto."""

    TABLE_TIMEOUT_MS = 20000

    def __init__(self, config: Optional[ProviderConfig] = None, **kwargs):
        super().__init__(config or SUNAT_CONFIG, **kwargs)

    async def read_quote(self, page: Page) -> Optional[Quote]:
        await page.wait_for_selector("table", timeout=self.TABLE_TIMEOUT_MS)
        text = await self._body_text(page)
        return self.parser.find_labeled_quote(text)
