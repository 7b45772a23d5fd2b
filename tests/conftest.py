from unittest.mock import MagicMock

import pytest

from browser_service import BrowserProvisioner
import stability_detector


class FakePlaywright:
    """Stands in for the object yielded by sync_playwright()."""

    def __init__(self, launch_results):
        self.chromium = MagicMock(name='chromium')
        self.chromium.launch.side_effect = list(launch_results)
        self.exited = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.exited = True
        return False


def make_page(title='My Great Post!', pdf=b'%PDF-1.4 fake document', heights=None, content_length=500):
    page = MagicMock(name='page')
    page.title.return_value = title
    page.pdf.return_value = pdf
    heights = list(heights) if heights is not None else [2000]

    def evaluate(script, *args):
        if script == stability_detector.SCROLL_HEIGHT_JS:
            return heights.pop(0) if len(heights) > 1 else heights[0]
        if script == stability_detector.CONTENT_LENGTH_JS:
            return content_length
        return None

    page.evaluate.side_effect = evaluate
    return page


def make_browser(page=None):
    browser = MagicMock(name='browser')
    browser.new_context.return_value.new_page.return_value = page or make_page()
    return browser


def make_provisioner(policy, *launch_results):
    playwrights = []

    def factory():
        playwright = FakePlaywright(launch_results)
        playwrights.append(playwright)
        return playwright

    provisioner = BrowserProvisioner(policy, playwright_factory=factory,
                                     executable_path_resolver=lambda: '/opt/chromium')
    provisioner.playwrights = playwrights
    return provisioner


@pytest.fixture
def page():
    return make_page()


@pytest.fixture
def browser(page):
    return make_browser(page)
