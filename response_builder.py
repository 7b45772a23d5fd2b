import json
from typing import Dict

from config import RenderPolicy
from errors import BrowserLaunchError, PageProcessingError, RenderError
from models import HttpResponse, RenderResult

SUGGESTIONS = {
    BrowserLaunchError: 'Try deploying to an environment where a headless Chromium build is available',
    PageProcessingError: 'This might be due to CORS restrictions or the page being blocked',
}

def cors_headers(policy: RenderPolicy) -> Dict[str, str]:
    """跨域响应头"""
    return {
        'Access-Control-Allow-Origin': '*',
        'Access-Control-Allow-Headers': 'Content-Type',
        'Access-Control-Allow-Methods': ', '.join(policy.allowed_methods),
    }

def preflight_response(policy: RenderPolicy) -> HttpResponse:
    """OPTIONS预检响应"""
    return HttpResponse(status_code=200, headers=cors_headers(policy), body='')

def pdf_response(result: RenderResult, policy: RenderPolicy) -> HttpResponse:
    """PDF成功响应"""
    headers = cors_headers(policy)
    headers.update({
        'Content-Type': 'application/pdf',
        'Content-Disposition': f'attachment; filename="{result.attachment_name}"',
        'Content-Length': str(result.size),
        'Cache-Control': 'no-cache, no-store, must-revalidate',
        'Pragma': 'no-cache',
        'Expires': '0',
    })
    return HttpResponse(status_code=200, headers=headers, body=result.pdf_bytes)

def error_response(error: RenderError, policy: RenderPolicy) -> HttpResponse:
    """错误响应（JSON）"""
    body = error.to_dict()
    if policy.include_suggestions:
        for error_type, suggestion in SUGGESTIONS.items():
            if isinstance(error, error_type):
                body['suggestion'] = suggestion
                break

    headers = cors_headers(policy)
    headers['Content-Type'] = 'application/json'
    return HttpResponse(status_code=error.status_code, headers=headers, body=json.dumps(body))
