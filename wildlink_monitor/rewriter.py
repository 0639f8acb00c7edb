"""
wild.link 链接改写器

rewrite() 在后台任务中请求生成短链，结果以 RewriteCompleted 消息投递回主循环；
apply() 只在主循环中调用，成功时覆盖剪贴板。失败的结果直接丢弃，剪贴板保持不变，
不向用户提示错误。
"""

import asyncio
from typing import Callable, Optional, Set

from .clipboard import Clipboard
from .exceptions import ClipboardError, WildfireApiError
from .models import RewriteCompleted, VanityRequest, VanityResult
from .utils import get_logger


class LinkRewriter:
    """请求 vanity 链接并在主循环中替换剪贴板内容"""

    def __init__(
        self,
        client,
        clipboard: Clipboard,
        post: Callable[[RewriteCompleted], None],
        label: str = "wild.link",
    ):
        self.client = client
        self.clipboard = clipboard
        self.post = post
        self.label = label
        self.logger = get_logger('LinkRewriter')
        self._tasks: Set[asyncio.Task] = set()
        self.stats = {
            'requested': 0,
            'succeeded': 0,
            'failed': 0,
            'applied': 0,
        }

    def rewrite(self, url: str) -> asyncio.Task:
        """为匹配的URL启动一次后台改写"""
        self.stats['requested'] += 1
        task = asyncio.create_task(self._run(VanityRequest(original_url=url)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, request: VanityRequest):
        result = await self.request_vanity(request)
        self.post(RewriteCompleted(result=result))

    async def request_vanity(self, request: VanityRequest) -> VanityResult:
        """调用后端生成短链；失败时返回没有 vanity_url 的结果"""
        self.logger.debug(f"正在为 {request.original_url} 生成 vanity URL")
        try:
            vanity = await self.client.create_vanity(request.original_url)
        except WildfireApiError as e:
            self.stats['failed'] += 1
            self.logger.debug(f"vanity URL 生成失败: Error {e.status_code} {e.message}")
            return VanityResult(original_url=request.original_url, error=str(e))

        self.stats['succeeded'] += 1
        return VanityResult(original_url=request.original_url, vanity_url=vanity.vanity_url)

    def apply(self, result: VanityResult) -> bool:
        """在主循环中应用改写结果，返回剪贴板是否被覆盖"""
        if not result.ok:
            return False

        try:
            self.clipboard.write_text(result.vanity_url, label=self.label)
        except ClipboardError as e:
            self.logger.warning(f"写入剪贴板失败: {str(e)}")
            return False

        self.stats['applied'] += 1
        self.logger.info(f"wild.link 已生成: {result.vanity_url}")
        return True

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def wait_idle(self, timeout: Optional[float] = None):
        """等待当前所有在途改写完成"""
        if not self._tasks:
            return
        await asyncio.wait(set(self._tasks), timeout=timeout)

    def cancel_all(self):
        """放弃所有在途改写"""
        for task in list(self._tasks):
            task.cancel()
