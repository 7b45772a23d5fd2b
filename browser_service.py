#!/usr/bin/env python3
"""
浏览器启动服务

首选便携版Chromium，失败时（若策略允许）回退到系统安装的浏览器。
每次调用独占一个浏览器进程，无论成功或失败都必须关闭。
"""

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright

import config
from config import BrowserCapabilities, RenderPolicy
from errors import BrowserLaunchError

logger = logging.getLogger(__name__)

class BrowserSession:
    """一个浏览器进程加一个页面"""

    def __init__(self, browser: Browser, context: BrowserContext, page: Page):
        self.browser = browser
        self.context = context
        self.page = page
        self.closed = False

    def close(self):
        """关闭浏览器，重复调用无副作用"""
        if self.closed:
            return
        self.closed = True
        try:
            self.browser.close()
            logger.info("浏览器已关闭")
        except Exception as e:
            logger.warning(f"关闭浏览器时出错: {e}")

class BrowserProvisioner:
    """浏览器启动器"""

    def __init__(self, policy: RenderPolicy,
                 portable: Optional[BrowserCapabilities] = None,
                 system: BrowserCapabilities = config.SYSTEM_CAPABILITIES,
                 playwright_factory: Callable = sync_playwright,
                 executable_path_resolver: Optional[Callable[[], Optional[str]]] = None):
        self.policy = policy
        self.portable = portable or policy.launch_capabilities
        self.system = system
        self.playwright_factory = playwright_factory
        self.executable_path_resolver = executable_path_resolver or resolve_executable_path

    def _launch_portable(self, playwright: Playwright) -> Browser:
        executable_path = self.executable_path_resolver()
        logger.info(f"启动便携版Chromium: {executable_path or 'Playwright内置'}")
        return playwright.chromium.launch(
            executable_path=executable_path,
            args=self.portable.to_args(),
            headless=True,
            timeout=config.LAUNCH_TIMEOUT_MS
        )

    def _launch_system(self, playwright: Playwright) -> Browser:
        logger.info(f"启动系统浏览器: channel={config.SYSTEM_BROWSER_CHANNEL}")
        return playwright.chromium.launch(
            channel=config.SYSTEM_BROWSER_CHANNEL,
            args=self.system.to_args(),
            headless=True,
            timeout=config.LAUNCH_TIMEOUT_MS
        )

    def launch(self, playwright: Playwright) -> Browser:
        """启动浏览器，所有策略失败时抛出BrowserLaunchError"""
        try:
            browser = self._launch_portable(playwright)
            logger.info("✅ 浏览器已通过便携版Chromium启动")
            return browser
        except Exception as chromium_error:
            if not self.policy.launch_fallback_enabled:
                logger.error(f"❌ Chromium启动失败: {chromium_error}")
                raise BrowserLaunchError(str(chromium_error)) from chromium_error

            logger.warning(f"Chromium启动失败，尝试系统浏览器: {chromium_error}")
            try:
                browser = self._launch_system(playwright)
                logger.info("✅ 浏览器已通过系统浏览器启动")
                return browser
            except Exception as system_error:
                logger.error(f"❌ Chromium和系统浏览器均启动失败: {system_error}")
                raise BrowserLaunchError(str(chromium_error), str(system_error)) from system_error

    def open_page(self, browser: Browser) -> BrowserSession:
        """创建上下文和页面"""
        context = browser.new_context(
            viewport=config.VIEWPORT,
            device_scale_factor=config.DEVICE_SCALE_FACTOR,
            ignore_https_errors=True,
            user_agent=self.policy.user_agent
        )
        page = context.new_page()
        return BrowserSession(browser, context, page)

    @contextmanager
    def session(self) -> Iterator[BrowserSession]:
        """获取浏览器会话，退出时保证关闭"""
        with self.playwright_factory() as playwright:
            browser = self.launch(playwright)
            try:
                session = self.open_page(browser)
            except Exception:
                browser.close()
                raise

            try:
                yield session
            finally:
                session.close()

def resolve_executable_path() -> Optional[str]:
    """在调用时解析便携版浏览器路径，未配置时使用Playwright内置Chromium"""
    return config.CHROMIUM_EXECUTABLE_PATH
