"""
渲染服务异常定义

每个异常都携带HTTP状态码，并能序列化为 {error, message, details, ...} 结构
"""

from typing import Any, Dict, Optional


class ConfigError(Exception):
    """配置错误"""


class RenderError(Exception):
    """渲染流程异常基类"""
    status_code = 500
    error = 'Internal server error'
    message = 'An unexpected error occurred while generating the PDF'

    def __init__(self, details: Optional[str] = None, **context: Any):
        super().__init__(details or self.message)
        self.details = details
        self.context = context

    def to_dict(self) -> Dict[str, Any]:
        body = {
            'error': self.error,
            'message': self.message,
        }
        if self.details is not None:
            body['details'] = self.details
        body.update({k: v for k, v in self.context.items() if v is not None})
        return body


class InputError(RenderError):
    """请求参数错误"""
    status_code = 400

    def __init__(self, error: str, message: str, **context: Any):
        super().__init__(None, **context)
        self.error = error
        self.message = message
        self.args = (message,)

    @classmethod
    def missing_target(cls, example: Optional[str] = None) -> 'InputError':
        return cls('Missing target URL', 'Please provide a target URL parameter', example=example)

    @classmethod
    def invalid_url(cls, provided: str) -> 'InputError':
        return cls('Invalid URL format', 'The target must be a valid URL', provided=provided)

    @classmethod
    def invalid_body(cls, details: str) -> 'InputError':
        return cls('Invalid request body', 'The request body must be a JSON object', details=details)


class BrowserLaunchError(RenderError):
    """浏览器启动失败（所有启动策略均失败）"""
    error = 'Browser launch failed'
    message = 'Could not launch browser for PDF generation'

    def __init__(self, chromium_error: str, system_error: Optional[str] = None):
        super().__init__(
            'This might be due to missing Chrome installation or permissions',
            chromiumError=chromium_error,
            systemError=system_error,
        )
        self.chromium_error = chromium_error
        self.system_error = system_error


class PageProcessingError(RenderError):
    """页面加载或处理失败"""
    error = 'Failed to process page'
    message = 'The page could not be loaded or processed for PDF generation'

    def __init__(self, details: str, target: Optional[str] = None):
        super().__init__(details, target=target)

    @property
    def target(self) -> Optional[str]:
        return self.context.get('target')

    @target.setter
    def target(self, value: Optional[str]):
        self.context['target'] = value


class NavigationError(PageProcessingError):
    """导航失败或超时"""


class EmptyPageError(PageProcessingError):
    """页面内容为空或被拦截"""

    def __init__(self, details: str = 'Page appears to be empty or blocked', target: Optional[str] = None):
        super().__init__(details, target=target)


class CaptureError(PageProcessingError):
    """PDF生成失败"""


class InternalError(RenderError):
    """未分类的内部错误"""
