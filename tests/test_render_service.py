import json
from unittest.mock import MagicMock

import pytest
from playwright.sync_api import Error as PlaywrightError

import render_service
from config import ROBUST_POLICY, SIMPLE_POLICY
from models import TargetRequest
from render_service import PdfRenderer, handle_request
from conftest import make_browser, make_page, make_provisioner


@pytest.fixture
def no_launch(monkeypatch):
    provisioner_cls = MagicMock(name="BrowserProvisioner")
    monkeypatch.setattr(render_service, "BrowserProvisioner", provisioner_cls)
    return provisioner_cls


def render_with(policy, browser, **kwargs):
    renderer = PdfRenderer(policy, make_provisioner(policy, browser))
    return handle_request(policy, renderer=renderer, **kwargs)


def test_options_short_circuits(no_launch):
    response = handle_request(SIMPLE_POLICY, "OPTIONS", query={"target": "not a url"})

    assert response.status_code == 200
    assert response.body == ""
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert response.headers["Access-Control-Allow-Methods"] == "GET, POST, OPTIONS"
    no_launch.assert_not_called()


@pytest.mark.parametrize("query", [{}, {"target": ""}, {"target": "   "}, None])
def test_missing_target(no_launch, query):
    response = handle_request(ROBUST_POLICY, "GET", query=query)

    assert response.status_code == 400
    assert response.json()["error"] == "Missing target URL"
    assert "example" in response.json()
    no_launch.assert_not_called()


@pytest.mark.parametrize("target", [
    "not a url",
    "example.com/blog",
    "ftp://example.com/file",
    "https://",
    "http://exa mple.com/",
    "https://example.com:99999/",
    "javascript:alert(1)",
    "https://exa<mple.com/",
    'http://ex"ample.com/',
    "https://exa^mple.com/",
    "https://[not-ipv6]/",
    "https://a..b.com/",
])
def test_invalid_target(no_launch, target):
    response = handle_request(ROBUST_POLICY, "GET", query={"target": target})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid URL format"
    assert body["provided"] == target
    no_launch.assert_not_called()


def test_post_body_target_on_simple_policy():
    browser = make_browser()
    response = render_with(SIMPLE_POLICY, browser, method="POST",
                           body=json.dumps({"target": "https://example.com/blog"}))

    assert response.status_code == 200
    browser.new_context.return_value.new_page.return_value.goto.assert_called_once()
    assert browser.new_context.return_value.new_page.return_value.goto.call_args.args[0] == \
        "https://example.com/blog"


@pytest.mark.parametrize("target", [
    "https://bücher.example/post",
    "http://127.0.0.1:8080/post",
    "http://[::1]:8080/post",
    "https://my_site.example.com/post",
])
def test_unusual_but_valid_hosts_accepted(target):
    target_request = TargetRequest.parse(target)
    assert target_request.url == target


def test_malformed_post_body(no_launch):
    response = handle_request(SIMPLE_POLICY, "POST", body=b"{not json")

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request body"
    no_launch.assert_not_called()


def test_success_response():
    browser = make_browser(make_page(title="My Great Post!", pdf=b"%PDF-1.7 body"))
    response = render_with(ROBUST_POLICY, browser, method="GET",
                           query={"target": "https://example.com"})

    assert response.status_code == 200
    assert response.body == b"%PDF-1.7 body"
    assert response.headers["Content-Type"] == "application/pdf"
    assert response.headers["Content-Disposition"] == 'attachment; filename="my-great-post.pdf"'
    assert response.headers["Content-Length"] == str(len(b"%PDF-1.7 body"))
    assert response.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"
    assert response.headers["Access-Control-Allow-Methods"] == "GET, OPTIONS"
    browser.close.assert_called_once()


def test_launch_failure_reports_both_errors():
    renderer = PdfRenderer(SIMPLE_POLICY, make_provisioner(
        SIMPLE_POLICY,
        PlaywrightError("chromium missing"),
        PlaywrightError("system chrome missing"),
    ))
    response = handle_request(SIMPLE_POLICY, "GET", query={"target": "https://example.com/"},
                              renderer=renderer)

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Browser launch failed"
    assert body["chromiumError"] == "chromium missing"
    assert body["systemError"] == "system chrome missing"
    assert "suggestion" in body


def test_empty_page_returns_500_without_pdf():
    browser = make_browser(make_page(content_length=12))
    response = render_with(SIMPLE_POLICY, browser, method="GET",
                           query={"target": "https://example.com/"})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to process page"
    assert body["details"] == "Page appears to be empty or blocked"
    assert body["target"] == "https://example.com/"
    browser.new_context.return_value.new_page.return_value.pdf.assert_not_called()
    browser.close.assert_called_once()


@pytest.mark.parametrize("stage", ["goto", "evaluate", "pdf"])
def test_browser_closed_exactly_once_on_page_failure(stage):
    page = make_page()
    getattr(page, stage).side_effect = PlaywrightError(f"{stage} failed")
    browser = make_browser(page)

    response = render_with(ROBUST_POLICY, browser, method="GET",
                           query={"target": "https://example.com/"})

    assert response.status_code == 500
    assert response.json()["details"] == f"{stage} failed"
    assert "suggestion" not in response.json()
    browser.close.assert_called_once()


def test_unexpected_error_is_internal_error():
    page = make_page()
    page.pdf.side_effect = KeyError("surprise")
    browser = make_browser(page)

    response = render_with(ROBUST_POLICY, browser, method="GET",
                           query={"target": "https://example.com/"})

    assert response.status_code == 500
    assert response.json()["error"] == "Internal server error"
    browser.close.assert_called_once()


def test_webflow_marker_failure_still_renders():
    page = make_page()
    page.wait_for_selector.side_effect = PlaywrightError("Execution context was destroyed")
    browser = make_browser(page)

    response = render_with(SIMPLE_POLICY, browser, method="GET",
                           query={"target": "https://example.com/"})

    assert response.status_code == 200
    assert response.headers["Content-Type"] == "application/pdf"
    browser.close.assert_called_once()
