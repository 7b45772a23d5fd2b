#!/usr/bin/env python3
"""
页面稳定性检测

在打印PDF之前依次等待：图片加载、字体加载，然后按策略执行
  - simple:      固定等待后检查页面文本长度
  - convergence: 滚动触发懒加载，直到页面高度连续多次不变
"""

import logging
from typing import Callable

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

import config
from config import RenderPolicy
from errors import EmptyPageError, PageProcessingError
from models import StabilitySnapshot

logger = logging.getLogger(__name__)

IMAGES_LOADED_JS = """
() => Promise.all(
    Array.from(document.images)
        .filter(img => !img.complete)
        .map(img => new Promise(resolve => {
            img.addEventListener('load', resolve, { once: true });
            img.addEventListener('error', resolve, { once: true });
        }))
).then(() => true)
"""

FONTS_READY_JS = """
() => {
    if (document.fonts && document.fonts.ready) {
        return document.fonts.ready.then(() => true);
    }
    return true;
}
"""

CONTENT_LENGTH_JS = "() => document.body ? document.body.textContent.length : 0"
SCROLL_HEIGHT_JS = "() => document.documentElement.scrollHeight"
SCROLL_TO_BOTTOM_JS = "() => window.scrollTo(0, document.documentElement.scrollHeight)"
SCROLL_TO_TOP_JS = "() => window.scrollTo(0, 0)"

def converge_height(read_height: Callable[[], int], nudge: Callable[[], None],
                    max_iterations: int = 10, required_stable_reads: int = 3) -> StabilitySnapshot:
    """
    等待页面高度收敛

    每次读取高度并与上一次比较：相同则计数加一，否则清零并记录新高度。
    计数达到 required_stable_reads 时提前退出；否则调用 nudge（滚动到底部并等待）后继续。
    达到 max_iterations 视为足够稳定，不抛出异常。
    """
    snapshot = StabilitySnapshot()

    for i in range(max_iterations):
        snapshot.iterations = i + 1
        current_height = read_height()

        if current_height == snapshot.document_height:
            snapshot.consecutive_stable_reads += 1
            if snapshot.consecutive_stable_reads >= required_stable_reads:
                snapshot.stable = True
                break
        else:
            snapshot.consecutive_stable_reads = 0
            snapshot.document_height = current_height

        nudge()

    return snapshot

class StabilityDetector:
    """页面稳定性检测器"""

    def __init__(self, policy: RenderPolicy):
        self.policy = policy

    def _wait_for(self, page: Page, script: str, label: str):
        try:
            page.wait_for_function(script, timeout=config.ASSET_WAIT_TIMEOUT_MS)
        except PlaywrightTimeoutError:
            logger.warning(f"等待{label}超时，继续...")

    def wait_for_assets(self, page: Page):
        """等待图片和字体加载完成"""
        self._wait_for(page, IMAGES_LOADED_JS, "图片加载")
        self._wait_for(page, FONTS_READY_JS, "字体加载")

    def check_content(self, page: Page):
        """检查页面文本长度"""
        content_length = page.evaluate(CONTENT_LENGTH_JS)
        logger.info(f"页面文本长度: {content_length}")
        if content_length < self.policy.min_content_length:
            raise EmptyPageError()

    def wait_for_height(self, page: Page) -> StabilitySnapshot:
        """滚动页面直到高度稳定，然后回到顶部"""
        page.wait_for_timeout(self.policy.dynamic_content_wait_ms)

        def nudge():
            page.evaluate(SCROLL_TO_BOTTOM_JS)
            page.wait_for_timeout(self.policy.height_check_interval_ms)

        snapshot = converge_height(
            lambda: page.evaluate(SCROLL_HEIGHT_JS),
            nudge,
            max_iterations=self.policy.max_height_checks,
            required_stable_reads=self.policy.required_stable_reads
        )
        if snapshot.stable:
            logger.info(f"页面高度在第 {snapshot.iterations} 次检查后稳定: {snapshot.document_height}px")
        else:
            logger.info(f"页面高度未完全稳定，已达到最大检查次数: {snapshot.document_height}px")

        page.evaluate(SCROLL_TO_TOP_JS)
        page.wait_for_timeout(self.policy.final_settle_ms)
        return snapshot

    def await_stable(self, page: Page, target_url: str = None):
        """等待页面稳定，页面为空时抛出EmptyPageError"""
        logger.info("等待页面内容稳定...")
        try:
            self.wait_for_assets(page)

            if self.policy.stability_mode == 'convergence':
                self.wait_for_height(page)
            else:
                page.wait_for_timeout(self.policy.settle_ms)

            if self.policy.min_content_length > 0:
                self.check_content(page)
        except PageProcessingError as e:
            e.target = target_url
            raise
        except PlaywrightError as e:
            logger.error(f"等待页面稳定时出错: {e}")
            raise PageProcessingError(str(e), target=target_url) from e
