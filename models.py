from dataclasses import dataclass, field
from typing import Dict, Optional, Union
from urllib.parse import urlparse
import base64
import ipaddress
import json
import re

from flask import Response

from errors import InputError

HOST_PATTERN = re.compile(r'^[a-z0-9_-]+(\.[a-z0-9_-]+)*\.?$')

def is_valid_host(hostname: str, netloc: str) -> bool:
    """校验主机名：域名、IPv4 或方括号包裹的 IPv6"""
    if '[' in netloc:
        try:
            ipaddress.IPv6Address(hostname)
            return True
        except ValueError:
            return False
    try:
        ascii_host = hostname.encode('idna').decode('ascii')
    except UnicodeError:
        return False
    return bool(HOST_PATTERN.match(ascii_host))

@dataclass
class TargetRequest:
    """待渲染的目标请求"""
    url: str
    http_method: str = 'GET'

    @classmethod
    def parse(cls, raw: Optional[str], http_method: str = 'GET',
              example: Optional[str] = None) -> 'TargetRequest':
        """校验目标URL，失败时抛出InputError"""
        if raw is None or not str(raw).strip():
            raise InputError.missing_target(example)

        raw = str(raw).strip()
        try:
            parsed = urlparse(raw)
            # 访问port会校验端口格式
            parsed.port
        except ValueError:
            raise InputError.invalid_url(raw)

        if (parsed.scheme not in ('http', 'https') or not parsed.hostname
                or any(c.isspace() for c in raw)
                or not is_valid_host(parsed.hostname, parsed.netloc)):
            raise InputError.invalid_url(raw)

        # 与浏览器的URL规范化保持一致：空路径补 "/"
        if not parsed.path:
            parsed = parsed._replace(path='/')

        return cls(url=parsed.geturl(), http_method=http_method.upper())

@dataclass
class StabilitySnapshot:
    """页面高度收敛状态"""
    document_height: int = 0
    consecutive_stable_reads: int = 0
    iterations: int = 0
    stable: bool = False

@dataclass
class RenderResult:
    """渲染结果"""
    pdf_bytes: bytes
    suggested_filename: str

    @property
    def size(self) -> int:
        return len(self.pdf_bytes)

    @property
    def attachment_name(self) -> str:
        return f"{self.suggested_filename}.pdf"

@dataclass
class HttpResponse:
    """与框架无关的HTTP响应"""
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: Union[bytes, str] = ''

    @property
    def is_binary(self) -> bool:
        return isinstance(self.body, bytes)

    def json(self) -> Dict:
        return json.loads(self.body)

    def to_event(self) -> Dict:
        """转换为无服务器函数的返回结构"""
        if self.is_binary:
            return {
                'statusCode': self.status_code,
                'headers': dict(self.headers),
                'body': base64.b64encode(self.body).decode('ascii'),
                'isBase64Encoded': True
            }
        return {
            'statusCode': self.status_code,
            'headers': dict(self.headers),
            'body': self.body,
        }

    def to_flask(self):
        """转换为Flask响应"""
        return Response(self.body, status=self.status_code, headers=self.headers)
