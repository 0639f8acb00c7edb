"""
剪贴板变化监听器
"""

from typing import Callable, Optional

from .clipboard import Clipboard
from .exceptions import ClipboardError
from .matcher import DomainMatcher
from .models import ClipboardEvent, MatchResult
from .utils import get_logger


class ClipboardListener:
    """每次剪贴板变化执行一轮匹配，本身不保存状态"""

    def __init__(self, clipboard: Clipboard, matcher: DomainMatcher, on_match: Callable[[str], object]):
        self.clipboard = clipboard
        self.matcher = matcher
        self.on_match = on_match
        self.logger = get_logger('ClipboardListener')

    def on_primary_clip_changed(self) -> Optional[MatchResult]:
        """通知不携带内容，需要重新读取剪贴板"""
        self.logger.debug("检查剪贴板...")
        # 在主循环中同步读取：pyperclip 在桌面上会启动 xclip/pbpaste，读取期间主循环被阻塞
        try:
            text = self.clipboard.read_text()
        except ClipboardError as e:
            self.logger.warning(f"剪贴板读取失败，跳过本次检查: {str(e)}")
            return None

        result = self.matcher.match(ClipboardEvent(text=text))
        if result.matched:
            # 第一个命中即停止，每次变化最多触发一次改写
            self.on_match(result.text)
        return result
