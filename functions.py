"""
无服务器函数入口

event 结构: {httpMethod, queryStringParameters, body, isBase64Encoded}
"""

import base64
import logging
from typing import Any, Dict

import config
from config import ROBUST_POLICY, SIMPLE_POLICY, RenderPolicy
from render_service import handle_request

logger = logging.getLogger(__name__)

# 冷启动时校验一次
config.validate_capabilities()

def _handle_event(policy: RenderPolicy, event: Dict[str, Any]) -> Dict[str, Any]:
    body = event.get('body')
    if body and event.get('isBase64Encoded'):
        body = base64.b64decode(body)

    response = handle_request(
        policy,
        event.get('httpMethod', 'GET'),
        query=event.get('queryStringParameters') or {},
        body=body
    )
    return response.to_event()

def generate_pdf(event, context=None):
    return _handle_event(ROBUST_POLICY, event)

def generate_pdf_simple(event, context=None):
    return _handle_event(SIMPLE_POLICY, event)
