"""
剪贴板内容域名匹配器

判断剪贴板文本是否为URL、提取主机名并与白名单比对：
1. 不是纯文本或不以 http 开头的内容直接忽略
2. 无法提取主机名的URL静默忽略
3. 主机名只去掉开头的 "www."，不做大小写或末尾点等其他规范化
4. 主机名是 wild.link 时停止，避免改写自己刚写入的链接
5. 按白名单插入顺序做子串匹配，第一个命中即停止

子串匹配意味着 "amazon.com" 也会命中路径或查询参数中出现的 amazon.com，
这是保留下来的既有行为。
"""

import re
from typing import Optional
from urllib.parse import urlsplit

from .exceptions import UrlParseError
from .models import ClipboardEvent, MatchResult
from .utils import get_logger
from .whitelist import WhitelistCache

TERMINAL_DOMAIN = "wild.link"

_INVALID_CHARS_RE = re.compile(r"[\s\x00-\x1f\x7f<>\"{}|\\^`]")


def get_domain_name(url: str) -> str:
    """提取URL的主机名并去掉开头的 www.

    主机名取自 netloc，保留原始大小写（.hostname 会转成小写）。

    Raises:
        UrlParseError: URL格式错误或没有主机名
    """
    # urlsplit 会静默删除制表符和换行
    if _INVALID_CHARS_RE.search(url):
        raise UrlParseError("URL包含非法字符", url=url)

    try:
        parts = urlsplit(url)
        # 访问 port 时校验端口号
        parts.port
    except ValueError as e:
        raise UrlParseError(f"URL格式错误: {str(e)}", url=url) from e

    host_port = parts.netloc.rpartition("@")[2]
    if host_port.startswith("["):
        host = host_port[:host_port.find("]") + 1]
    else:
        host = host_port.partition(":")[0]

    if not host:
        raise UrlParseError("URL没有主机名", url=url)

    return host[4:] if host.startswith("www.") else host


class DomainMatcher:
    """根据白名单判断剪贴板URL是否需要改写"""

    def __init__(self, cache: WhitelistCache, terminal_domain: str = TERMINAL_DOMAIN):
        self.cache = cache
        self.terminal_domain = terminal_domain
        self.logger = get_logger('DomainMatcher')

    def match(self, event: ClipboardEvent) -> MatchResult:
        text = event.text

        # 剪贴板是否为URL
        if text is None or not text.startswith("http"):
            self.logger.debug("复制的内容不是URL")
            return MatchResult(kind="not_url", text=text)

        try:
            domain = get_domain_name(text)
        except UrlParseError as e:
            self.logger.debug(f"URL解析失败，忽略: {str(e)}")
            return MatchResult(kind="invalid", text=text)

        self.logger.debug(f"{text} -- domain = {domain}")

        if domain == self.terminal_domain:
            self.logger.debug(f"剪贴板已经是 {self.terminal_domain} 链接，停止检查")
            return MatchResult(kind="terminal", text=text, domain=domain)

        concept = self.cache.first_match(text)
        if concept is None:
            return MatchResult(kind="no_match", text=text, domain=domain)

        self.logger.info(f"匹配到合作商户域名: {concept.value}")
        return MatchResult(kind="match", text=text, domain=domain, concept=concept)
