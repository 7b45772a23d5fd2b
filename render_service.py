#!/usr/bin/env python3
"""
PDF渲染服务

按策略串行执行：启动浏览器 -> 加载页面 -> 等待稳定 -> 生成PDF -> 组装响应
"""

import json
import logging
from typing import Dict, Optional, Union

from config import RenderPolicy
from browser_service import BrowserProvisioner
from errors import InputError, InternalError, RenderError
from models import HttpResponse, RenderResult, TargetRequest
from page_loader import PageLoader
from pdf_capturer import PdfCapturer
from response_builder import error_response, pdf_response, preflight_response
from stability_detector import StabilityDetector

logger = logging.getLogger(__name__)

class PdfRenderer:
    """按渲染策略生成PDF"""

    def __init__(self, policy: RenderPolicy, provisioner: Optional[BrowserProvisioner] = None):
        self.policy = policy
        self.provisioner = provisioner or BrowserProvisioner(policy)
        self.loader = PageLoader(policy)
        self.detector = StabilityDetector(policy)
        self.capturer = PdfCapturer(policy.default_filename)

    def render(self, target: TargetRequest) -> RenderResult:
        """渲染单个URL，浏览器在所有退出路径上都会被关闭"""
        logger.info(f"开始生成PDF: {target.url} (策略: {self.policy.name})")

        with self.provisioner.session() as session:
            self.loader.load(session.page, target.url)
            self.detector.await_stable(session.page, target.url)
            return self.capturer.capture(session.page, target.url)

def extract_target(policy: RenderPolicy, method: str, query: Optional[Dict],
                   body: Union[str, bytes, None]) -> Optional[str]:
    """从查询参数或JSON请求体中获取target"""
    if method == 'POST' and policy.accept_post_body:
        if isinstance(body, bytes):
            body = body.decode('utf-8', errors='replace')
        try:
            data = json.loads(body or '{}')
        except ValueError as e:
            raise InputError.invalid_body(str(e))
        if not isinstance(data, dict):
            raise InputError.invalid_body('Expected a JSON object')
        return data.get('target')

    return (query or {}).get('target')

def handle_request(policy: RenderPolicy, method: str, query: Optional[Dict] = None,
                   body: Union[str, bytes, None] = None,
                   renderer: Optional[PdfRenderer] = None) -> HttpResponse:
    """处理一次PDF生成请求"""
    method = (method or 'GET').upper()

    if method == 'OPTIONS':
        return preflight_response(policy)

    try:
        raw_target = extract_target(policy, method, query, body)
        target = TargetRequest.parse(raw_target, method, example=policy.example_path)

        renderer = renderer or PdfRenderer(policy)
        result = renderer.render(target)

        logger.info(f"✅ PDF生成完成: {result.attachment_name} ({result.size} bytes)")
        return pdf_response(result, policy)

    except InputError as e:
        logger.warning(f"请求参数错误: {e.error}")
        return error_response(e, policy)
    except RenderError as e:
        logger.error(f"❌ PDF生成失败: {e}")
        return error_response(e, policy)
    except Exception as e:
        logger.exception(f"❌ 未知错误: {e}")
        return error_response(InternalError(str(e)), policy)
