"""
系统剪贴板访问

监控核心只依赖 Clipboard 接口：读取主剪贴板纯文本、以带标签的纯文本覆盖主剪贴板。
PyperclipClipboard 是基于 pyperclip 的桌面实现。
"""

from abc import ABC, abstractmethod
from typing import Optional

import pyperclip

from .exceptions import ClipboardError
from .utils import get_logger


class Clipboard(ABC):
    """主剪贴板接口"""

    @abstractmethod
    def read_text(self) -> Optional[str]:
        """返回当前纯文本内容；为空或不是纯文本时返回None"""

    @abstractmethod
    def write_text(self, text: str, label: str = "") -> None:
        """以纯文本覆盖主剪贴板内容"""


class PyperclipClipboard(Clipboard):
    """基于pyperclip的剪贴板实现

    pyperclip不支持剪贴板标签，最近一次写入的标签保存在 last_label 上。
    """

    def __init__(self):
        self.logger = get_logger('Clipboard')
        self.last_label: Optional[str] = None

    def read_text(self) -> Optional[str]:
        try:
            text = pyperclip.paste()
        except pyperclip.PyperclipException as e:
            raise ClipboardError(f"读取剪贴板失败: {str(e)}", clipboard_type="pyperclip") from e

        # pyperclip 对空剪贴板和非文本内容都返回空字符串
        if not isinstance(text, str) or not text:
            return None
        return text

    def write_text(self, text: str, label: str = "") -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise ClipboardError(f"写入剪贴板失败: {str(e)}", clipboard_type="pyperclip") from e
        self.last_label = label or None
        self.logger.debug(f"剪贴板已写入 [{label}]: {text}")
