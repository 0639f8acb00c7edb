"""
Wildlink剪贴板监控工具

监控剪贴板中复制的URL，命中合作商户域名时替换为 wild.link 推广链接。
"""

from .__version__ import (
    __version__,
    __version_info__,
    PROJECT_NAME,
    PROJECT_DESCRIPTION,
    AUTHOR,
    get_version_string,
)
from .config import ConfigManager, AppConfig
from .api_client import WildfireClient
from .whitelist import WhitelistCache, WhitelistLoader
from .matcher import DomainMatcher, get_domain_name, TERMINAL_DOMAIN
from .rewriter import LinkRewriter
from .listener import ClipboardListener
from .monitor import ClipboardMonitorService
from .exceptions import (
    WildlinkMonitorError,
    ConfigError,
    ClipboardError,
    UrlParseError,
    WildfireApiError,
    NetworkError,
    DeviceRegistrationError,
)

__author__ = AUTHOR
__all__ = [
    # 版本信息
    "__version__",
    "__version_info__",
    "PROJECT_NAME",
    "PROJECT_DESCRIPTION",
    "get_version_string",
    # 核心类
    "ConfigManager",
    "AppConfig",
    "WildfireClient",
    "WhitelistCache",
    "WhitelistLoader",
    "DomainMatcher",
    "get_domain_name",
    "TERMINAL_DOMAIN",
    "LinkRewriter",
    "ClipboardListener",
    "ClipboardMonitorService",
    # 异常类
    "WildlinkMonitorError",
    "ConfigError",
    "ClipboardError",
    "UrlParseError",
    "WildfireApiError",
    "NetworkError",
    "DeviceRegistrationError",
]
