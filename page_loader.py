import logging
import time

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, Route
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

import config
from config import RenderPolicy
from errors import NavigationError

logger = logging.getLogger(__name__)

class PageLoader:
    """页面加载器"""

    def __init__(self, policy: RenderPolicy):
        self.policy = policy
        self.blocked_count = 0

    def _handle_route(self, route: Route):
        """按资源类型拦截请求"""
        if route.request.resource_type in self.policy.blocked_resource_types:
            self.blocked_count += 1
            route.abort()
        else:
            route.continue_()

    def load(self, page: Page, target_url: str):
        """导航到目标页面，失败时抛出NavigationError"""
        page.route("**/*", self._handle_route)

        logger.info(f"正在访问页面: {target_url} (等待模式: {self.policy.navigation_wait_mode})")
        started = time.monotonic()
        try:
            if self.policy.navigation_wait_mode == 'strict':
                page.goto(target_url, wait_until="networkidle",
                          timeout=self.policy.navigation_timeout_ms)
            else:
                page.goto(target_url, wait_until="load",
                          timeout=self.policy.navigation_timeout_ms)
                elapsed_ms = int((time.monotonic() - started) * 1000)
                self._wait_for_network_idle(page, self.policy.navigation_timeout_ms - elapsed_ms)
        except PlaywrightError as e:
            logger.error(f"页面导航失败: {e}")
            raise NavigationError(str(e), target=target_url) from e

        if self.blocked_count:
            logger.info(f"已拦截 {self.blocked_count} 个资源请求")

        if self.policy.detect_webflow:
            self._detect_webflow(page)

        logger.info("页面加载完成")

    def _wait_for_network_idle(self, page: Page, remaining_ms: int):
        """宽松模式：尽量等待网络空闲，超时继续"""
        if remaining_ms <= 0:
            return
        try:
            page.wait_for_load_state("networkidle", timeout=remaining_ms)
        # 页面已触发load事件；持续有请求的站点（统计脚本、轮询）在此超时后照常打印，
        # 不视为NavigationError
        except PlaywrightTimeoutError:
            logger.info("网络空闲等待超时，继续...")

    def _detect_webflow(self, page: Page) -> bool:
        """等待Webflow站点标记，未找到不视为错误"""
        try:
            page.wait_for_selector(config.WEBFLOW_MARKER_SELECTOR,
                                   state="attached",
                                   timeout=config.WEBFLOW_MARKER_TIMEOUT_MS)
            logger.info("检测到Webflow站点")
            return True
        except PlaywrightTimeoutError:
            logger.info("非Webflow站点或未找到站点ID")
            return False
        except PlaywrightError as e:
            logger.warning(f"检测Webflow站点标记时出错，继续: {e}")
            return False
