import os
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

from dotenv import load_dotenv

from errors import ConfigError

# 加载环境变量
load_dotenv()

# Flask配置
PORT = int(os.getenv('PORT', '8081'))
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

# 浏览器配置
CHROMIUM_EXECUTABLE_PATH = os.getenv('CHROMIUM_EXECUTABLE_PATH') or None
SYSTEM_BROWSER_CHANNEL = os.getenv('SYSTEM_BROWSER_CHANNEL', 'chrome')
LAUNCH_TIMEOUT_MS = 30000
VIEWPORT = {'width': 1200, 'height': 800}
DEVICE_SCALE_FACTOR = 1

# 资源拦截配置，默认不拦截任何资源
BLOCKED_RESOURCE_TYPES = frozenset(
    t.strip() for t in os.getenv('BLOCKED_RESOURCE_TYPES', '').split(',') if t.strip()
)
KNOWN_RESOURCE_TYPES = frozenset({
    'document', 'stylesheet', 'image', 'media', 'font', 'script', 'texttrack',
    'xhr', 'fetch', 'eventsource', 'websocket', 'manifest', 'other',
})

# 页面等待配置（毫秒）
ASSET_WAIT_TIMEOUT_MS = int(os.getenv('ASSET_WAIT_TIMEOUT_MS', '30000'))
WEBFLOW_MARKER_SELECTOR = '[data-wf-site]'
WEBFLOW_MARKER_TIMEOUT_MS = 10000

# PDF配置
CAPTURE_TIMEOUT_MS = 60000
PDF_FORMAT = 'A4'
PDF_MARGIN = {'top': '10mm', 'right': '10mm', 'bottom': '10mm', 'left': '10mm'}
FILENAME_MAX_LENGTH = 50

WINDOWS_USER_AGENT = ('Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
                      '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36')
MAC_USER_AGENT = ('Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 '
                  '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36')


@dataclass(frozen=True)
class BrowserCapabilities:
    """浏览器进程能力描述"""
    sandbox: bool = False
    gpu: bool = False
    shared_memory: bool = False
    zygote: bool = False
    single_process: bool = True
    extensions: bool = False
    extra_flags: Tuple[str, ...] = ()

    def validate(self) -> None:
        """校验参数组合"""
        if not self.zygote and self.sandbox:
            raise ConfigError("--no-zygote requires the sandbox to be disabled")
        if self.single_process and self.zygote:
            raise ConfigError("single-process mode requires the zygote to be disabled")
        for flag in self.extra_flags:
            if not flag.startswith('--'):
                raise ConfigError(f"Invalid browser flag: {flag}")

    def to_args(self) -> list:
        """生成Chromium启动参数"""
        args = []
        if not self.sandbox:
            args += ['--no-sandbox', '--disable-setuid-sandbox']
        if not self.shared_memory:
            args.append('--disable-dev-shm-usage')
        if not self.gpu:
            args.append('--disable-gpu')
        args.append('--no-first-run')
        if not self.zygote:
            args.append('--no-zygote')
        if self.single_process:
            args.append('--single-process')
        if not self.extensions:
            args.append('--disable-extensions')
        args += list(self.extra_flags)
        return args


# 便携版Chromium（首选），适用于受限的无服务器容器
PORTABLE_CAPABILITIES = BrowserCapabilities(
    extra_flags=(
        '--disable-background-timer-throttling',
        '--disable-backgrounding-occluded-windows',
        '--disable-renderer-backgrounding',
        '--disable-features=TranslateUI',
        '--disable-ipc-flooding-protection',
        '--disable-hang-monitor',
        '--disable-prompt-on-repost',
        '--disable-client-side-phishing-detection',
        '--disable-component-extensions-with-background-pages',
        '--disable-default-apps',
        '--disable-sync',
        '--metrics-recording-only',
        '--no-default-browser-check',
        '--mute-audio',
        '--no-pings',
        '--disable-web-security',
        '--disable-features=VizDisplayCompositor',
    ),
)

# 便携版Chromium（精简参数），不关闭Web安全等额外特性
LEAN_PORTABLE_CAPABILITIES = BrowserCapabilities()

# 系统浏览器（备用）
SYSTEM_CAPABILITIES = BrowserCapabilities(zygote=True, single_process=False)


def validate_capabilities() -> None:
    """启动时校验所有浏览器能力描述"""
    for policy in POLICIES.values():
        policy.launch_capabilities.validate()
    SYSTEM_CAPABILITIES.validate()
    unknown = BLOCKED_RESOURCE_TYPES - KNOWN_RESOURCE_TYPES
    if unknown:
        raise ConfigError(f"Unknown resource types in BLOCKED_RESOURCE_TYPES: {sorted(unknown)}")


@dataclass(frozen=True)
class RenderPolicy:
    """渲染策略"""
    name: str
    navigation_wait_mode: str = 'strict'  # lenient | strict
    navigation_timeout_ms: int = 60000
    stability_mode: str = 'convergence'  # simple | convergence
    launch_fallback_enabled: bool = False
    launch_capabilities: BrowserCapabilities = PORTABLE_CAPABILITIES
    user_agent: str = WINDOWS_USER_AGENT
    blocked_resource_types: FrozenSet[str] = field(default_factory=frozenset)
    default_filename: str = 'blog-post'
    allowed_methods: Tuple[str, ...] = ('GET', 'OPTIONS')
    accept_post_body: bool = False
    detect_webflow: bool = False
    settle_ms: int = 3000
    min_content_length: int = 0
    # 收敛模式参数
    dynamic_content_wait_ms: int = 2000
    max_height_checks: int = 10
    required_stable_reads: int = 3
    height_check_interval_ms: int = 500
    final_settle_ms: int = 1000
    include_suggestions: bool = False
    example_path: Optional[str] = None

    def __post_init__(self):
        if self.navigation_wait_mode not in ('lenient', 'strict'):
            raise ConfigError(f"Unknown navigation wait mode: {self.navigation_wait_mode}")
        if self.stability_mode not in ('simple', 'convergence'):
            raise ConfigError(f"Unknown stability mode: {self.stability_mode}")


ROBUST_POLICY = RenderPolicy(
    name='generate-pdf',
    navigation_wait_mode='strict',
    navigation_timeout_ms=60000,
    stability_mode='convergence',
    launch_fallback_enabled=False,
    launch_capabilities=PORTABLE_CAPABILITIES,
    user_agent=WINDOWS_USER_AGENT,
    blocked_resource_types=BLOCKED_RESOURCE_TYPES,
    default_filename='blog-post',
    example_path='/.netlify/functions/generate-pdf?target=https://example.com/blog-post',
)

SIMPLE_POLICY = RenderPolicy(
    name='generate-pdf-simple',
    navigation_wait_mode='lenient',
    navigation_timeout_ms=90000,
    stability_mode='simple',
    launch_fallback_enabled=True,
    launch_capabilities=LEAN_PORTABLE_CAPABILITIES,
    user_agent=MAC_USER_AGENT,
    blocked_resource_types=BLOCKED_RESOURCE_TYPES,
    default_filename='webflow-blog-post',
    allowed_methods=('GET', 'POST', 'OPTIONS'),
    accept_post_body=True,
    detect_webflow=True,
    settle_ms=3000,
    min_content_length=100,
    include_suggestions=True,
    example_path='?target=https://example.com/blog-post',
)

POLICIES = {
    ROBUST_POLICY.name: ROBUST_POLICY,
    SIMPLE_POLICY.name: SIMPLE_POLICY,
}
