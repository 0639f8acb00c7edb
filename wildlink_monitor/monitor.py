"""
剪贴板监控服务

组装白名单加载器、监听器、匹配器与改写器，并运行唯一的主调度循环：
- 剪贴板变化通知与后台改写结果都以消息形式进入主循环收件箱
- 监听器的匹配与剪贴板写入只在主循环中执行
- 白名单加载与短链请求在后台任务中执行
"""

import asyncio
import time
from typing import Any, Dict, Optional

from .clipboard import Clipboard
from .clipboard_poller import ClipboardPoller, PollerConfig
from .config import AppConfig
from .listener import ClipboardListener
from .matcher import DomainMatcher
from .models import ClipboardChanged, RewriteCompleted
from .rewriter import LinkRewriter
from .utils import get_logger
from .whitelist import WhitelistCache, WhitelistLoader


class ClipboardMonitorService:
    """合作商户链接剪贴板监控服务"""

    def __init__(
        self,
        client,
        clipboard: Clipboard,
        config: AppConfig,
        cache: Optional[WhitelistCache] = None,
    ):
        self.client = client
        self.clipboard = clipboard
        self.config = config
        self.logger = get_logger('ClipboardMonitor')

        self.cache = cache if cache is not None else WhitelistCache()
        self.loader = WhitelistLoader(client, self.cache, kind=config.monitor.concept_kind)
        self.matcher = DomainMatcher(self.cache)
        self.rewriter = LinkRewriter(
            client,
            clipboard,
            self.post,
            label=config.monitor.clip_label,
        )
        self.listener = ClipboardListener(clipboard, self.matcher, self.rewriter.rewrite)

        poller_config = PollerConfig(
            base_interval=config.monitor.check_interval,
            min_interval=config.monitor.min_interval,
            max_interval_multiplier=config.monitor.max_interval_multiplier,
        )
        self.poller = ClipboardPoller(poller_config, clipboard, self.notify_clipboard_changed)

        self._inbox: asyncio.Queue = asyncio.Queue()
        self.is_running = False
        self._poller_task: Optional[asyncio.Task] = None
        self.stats = {
            'clipboard_changes': 0,
            'matches': 0,
            'rewrites_applied': 0,
            'started_at': None,
        }

    def post(self, message: Any):
        """向主循环投递消息，后台任务回到主循环的唯一途径"""
        self._inbox.put_nowait(message)

    def notify_clipboard_changed(self):
        """平台剪贴板变化通知入口"""
        self.post(ClipboardChanged())

    async def start(self):
        """启动白名单加载与剪贴板轮询，然后运行主循环直到 stop()"""
        self.is_running = True
        self.stats['started_at'] = time.time()
        self.logger.info("开始监控剪贴板...")

        self.loader.start().add_done_callback(self._on_loader_done)
        self._poller_task = asyncio.create_task(self.poller.start(), name="clipboard-poller")

        try:
            while self.is_running:
                message = await self._inbox.get()
                if message is None:
                    continue
                self.dispatch(message)
        except asyncio.CancelledError:
            self.logger.info("监控已取消")
            raise
        finally:
            self.is_running = False
            await self.cleanup()
            self.logger.info("剪贴板监控已停止")

    def _on_loader_done(self, task: asyncio.Task):
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.error(f"白名单加载任务异常退出: {error!r}")

    def stop(self):
        """停止监控"""
        self.is_running = False
        self.poller.stop()
        # 唤醒主循环
        self.post(None)

    def dispatch(self, message: Any):
        """在主循环中处理一条消息"""
        if isinstance(message, ClipboardChanged):
            self.stats['clipboard_changes'] += 1
            result = self.listener.on_primary_clip_changed()
            if result is not None and result.matched:
                self.stats['matches'] += 1
        elif isinstance(message, RewriteCompleted):
            if self.rewriter.apply(message.result):
                self.stats['rewrites_applied'] += 1
        else:
            self.logger.debug(f"忽略未知消息: {message!r}")

    def process_pending(self) -> int:
        """处理收件箱中已有的全部消息，返回处理数量"""
        handled = 0
        while True:
            try:
                message = self._inbox.get_nowait()
            except asyncio.QueueEmpty:
                return handled
            if message is not None:
                self.dispatch(message)
                handled += 1

    async def cleanup(self):
        """放弃在途任务，白名单与剪贴板不需要回滚"""
        self.poller.stop()
        if self._poller_task and not self._poller_task.done():
            self._poller_task.cancel()
            try:
                await self._poller_task
            except asyncio.CancelledError:
                pass
        self.loader.cancel()
        self.rewriter.cancel_all()

    def get_status(self) -> Dict[str, Any]:
        return {
            'is_running': self.is_running,
            'whitelist_size': len(self.cache),
            'whitelist_complete': self.loader.completed,
            'whitelist_pages': self.loader.fetch_count,
            'pending_rewrites': self.rewriter.pending,
            'clipboard_reads': self.poller.clipboard_reads,
            'stats': dict(self.stats),
            'rewriter': dict(self.rewriter.stats),
        }
