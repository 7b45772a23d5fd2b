import logging
import re
from typing import Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

import config
from errors import CaptureError
from models import RenderResult

logger = logging.getLogger(__name__)

def derive_filename(title: Optional[str], default: str) -> str:
    """根据页面标题生成文件名（不含扩展名）"""
    if not title or not title.strip():
        return default

    filename = re.sub(r'[^a-zA-Z0-9\s-]', '', title)
    filename = re.sub(r'\s+', '-', filename)
    filename = filename.lower()[:config.FILENAME_MAX_LENGTH]
    return filename or default

class PdfCapturer:
    """PDF生成器"""

    def __init__(self, default_filename: str = 'blog-post'):
        self.default_filename = default_filename

    def _extract_filename(self, page: Page) -> str:
        try:
            return derive_filename(page.title(), self.default_filename)
        except Exception as e:
            logger.warning(f"无法获取页面标题: {e}")
            return self.default_filename

    def capture(self, page: Page, target_url: str = None) -> RenderResult:
        """打印页面为PDF，失败时抛出CaptureError"""
        logger.info("正在生成PDF...")
        page.set_default_timeout(config.CAPTURE_TIMEOUT_MS)
        try:
            pdf_bytes = page.pdf(
                format=config.PDF_FORMAT,
                print_background=True,
                margin=config.PDF_MARGIN,
                prefer_css_page_size=True,
                display_header_footer=False,
                scale=1.0
            )
        except PlaywrightError as e:
            logger.error(f"PDF生成失败: {e}")
            raise CaptureError(str(e), target=target_url) from e

        if not pdf_bytes:
            raise CaptureError("PDF generation returned an empty document", target=target_url)

        logger.info(f"PDF生成成功，大小: {len(pdf_bytes)} bytes")

        return RenderResult(
            pdf_bytes=pdf_bytes,
            suggested_filename=self._extract_filename(page)
        )
