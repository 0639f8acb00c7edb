"""
合作商户域名白名单

WhitelistCache 是只追加的域名片段集合：加载器是唯一写入方，匹配器按快照读取。
读取方随时可能看到部分加载的白名单，这是允许的状态。

WhitelistLoader 在监控启动时逐页拉取全部域名片段，失败即中止，保留已加载部分。
"""

import asyncio
import threading
from typing import Iterable, Iterator, List, Optional, Tuple

from .exceptions import WildfireApiError
from .models import Concept
from .utils import get_logger


class WhitelistCache:
    """线程安全的只追加白名单缓存"""

    def __init__(self, concepts: Optional[Iterable[Concept]] = None):
        self._concepts: List[Concept] = []
        self._lock = threading.Lock()
        if concepts:
            self.extend(concepts)

    def extend(self, concepts: Iterable[Concept]) -> int:
        """按顺序追加一批域名片段，返回追加数量"""
        batch = list(concepts)
        with self._lock:
            self._concepts.extend(batch)
        return len(batch)

    def snapshot(self) -> Tuple[Concept, ...]:
        """返回当前内容的不可变快照（插入顺序）"""
        with self._lock:
            return tuple(self._concepts)

    def first_match(self, text: str) -> Optional[Concept]:
        """按插入顺序返回第一个作为子串出现在 text 中的域名片段"""
        for concept in self.snapshot():
            if concept.value in text:
                return concept
        return None

    def values(self) -> List[str]:
        return [concept.value for concept in self.snapshot()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._concepts)

    def __iter__(self) -> Iterator[Concept]:
        return iter(self.snapshot())


class WhitelistLoader:
    """分页加载合作商户域名到白名单缓存"""

    def __init__(self, client, cache: WhitelistCache, kind: str = "domain"):
        self.client = client
        self.cache = cache
        self.kind = kind
        self.logger = get_logger('WhitelistLoader')
        self.fetch_count = 0
        self.completed = False
        self.last_error: Optional[WildfireApiError] = None
        self._task: Optional[asyncio.Task] = None

    def start(self) -> asyncio.Task:
        """在后台启动加载，每个加载器只运行一次"""
        if self._task is None:
            self._task = asyncio.create_task(self.load(), name="whitelist-loader")
        return self._task

    async def load(self) -> int:
        """拉取全部分页，返回本次追加到缓存的域名数量"""
        cursor: Optional[str] = None
        added = 0

        try:
            while True:
                page = await self.client.list_domains(kind=self.kind, cursor=cursor)
                self.fetch_count += 1

                # 空字符串是任何文本的子串，不能进入白名单
                concepts = [c for c in page.concepts if c.value]
                skipped = len(page.concepts) - len(concepts)
                if skipped:
                    self.logger.debug(f"跳过 {skipped} 个空域名片段")

                added += self.cache.extend(concepts)
                self.logger.debug(f"第 {self.fetch_count} 页已加载，白名单数量: {len(self.cache)}")

                if page.is_last:
                    break
                cursor = page.next_cursor

        except WildfireApiError as e:
            self.last_error = e
            self.logger.warning(
                f"白名单加载中止 (第 {self.fetch_count + 1} 页): "
                f"Error {e.status_code} {e.message}，保留已加载的 {len(self.cache)} 个域名"
            )
            return added

        self.completed = True
        self.logger.info(f"白名单加载完成: {len(self.cache)} 个域名，共 {self.fetch_count} 页")
        return added

    def cancel(self):
        """放弃未完成的加载，已追加的内容保留"""
        if self._task is not None and not self._task.done():
            self._task.cancel()
