"""
剪贴板轮询器

负责读取剪贴板、检测变化并根据活动情况自动调整轮询间隔。
每次内容变化只发出一次不带内容的通知，处理方需要自行重新读取剪贴板。
"""

import asyncio
from dataclasses import dataclass
from typing import Optional, Callable

from .clipboard import Clipboard
from .exceptions import ClipboardError
from .utils import get_logger


@dataclass
class PollerConfig:
    base_interval: float
    min_interval: float = 0.2
    max_interval_multiplier: float = 4.0

    @property
    def max_interval(self) -> float:
        return self.base_interval * self.max_interval_multiplier


class ClipboardPoller:
    """管理剪贴板读取频率和变化检测"""

    def __init__(
        self,
        config: PollerConfig,
        clipboard: Clipboard,
        on_change: Callable[[], None],
    ):
        self.config = config
        self.clipboard = clipboard
        self.on_change = on_change
        self.logger = get_logger('ClipboardPoller')
        self.current_interval = max(self.config.min_interval, self.config.base_interval)
        self._last_clip_hash: Optional[int] = None
        self._idle_count = 0
        self._running = False
        self._lock = asyncio.Lock()
        self.clipboard_reads = 0
        self.notifications = 0

    async def start(self):
        """开始轮询剪贴板；启动时的内容只作为基线，不触发通知"""
        self._running = True
        await self.prime()

        while self._running:
            await asyncio.sleep(self.current_interval)
            if not self._running:
                break

            changed = await self.poll_once()
            if changed:
                self._idle_count = 0
                self.current_interval = self.config.base_interval
            else:
                self._idle_count += 1
                self._adjust_interval()

    def stop(self):
        self._running = False

    async def prime(self):
        """记录当前剪贴板内容作为基线"""
        self._last_clip_hash = self._hash(await self._safe_read())

    async def poll_once(self) -> bool:
        """读取一次剪贴板，内容变化时发出通知"""
        text = await self._safe_read()
        if not self._detect_change(text):
            return False
        self.notifications += 1
        self.on_change()
        return True

    async def _read_clipboard(self) -> Optional[str]:
        """异步读取剪贴板内容"""
        self.clipboard_reads += 1
        async with self._lock:
            return await asyncio.to_thread(self.clipboard.read_text)

    async def _safe_read(self) -> Optional[str]:
        try:
            return await self._read_clipboard()
        except ClipboardError as e:
            self.logger.warning(f"剪贴板读取失败: {str(e)}")
            return None

    @staticmethod
    def _hash(text: Optional[str]) -> int:
        return hash(text) if text else 0

    def _detect_change(self, text: Optional[str]) -> bool:
        current_hash = self._hash(text)
        if current_hash == self._last_clip_hash:
            return False
        self._last_clip_hash = current_hash
        return True

    def _adjust_interval(self):
        """根据空闲次数调整轮询间隔"""
        if self._idle_count > 5:
            self.current_interval = min(
                self.current_interval * 1.2,
                self.config.max_interval,
            )
        else:
            self.current_interval = max(
                self.config.min_interval,
                self.current_interval * 0.8,
            )
