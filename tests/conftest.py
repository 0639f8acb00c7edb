"""
测试配置和共享工具
"""

import threading
from pathlib import Path
from typing import List, Optional, Tuple
import pytest
import pytest_asyncio

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
import sys
sys.path.insert(0, str(project_root))

from wildlink_monitor.clipboard import Clipboard
from wildlink_monitor.config import AppConfig
from wildlink_monitor.exceptions import WildfireApiError
from wildlink_monitor.models import Concept, ConceptPage, Device, Vanity
from wildlink_monitor.monitor import ClipboardMonitorService
from wildlink_monitor.whitelist import WhitelistCache


VANITY_URL = "https://wild.link/e/abc123"


def make_page(values, next_cursor=None) -> ConceptPage:
    """构造一页域名片段"""
    return ConceptPage(
        concepts=[Concept(value=v, kind="domain") for v in values],
        next_cursor=next_cursor,
    )


class MockClipboard(Clipboard):
    """模拟系统剪贴板"""

    def __init__(self, text: Optional[str] = None):
        self.text = text
        self.label: Optional[str] = None
        self.writes: List[Tuple[str, str]] = []
        self.reads = 0
        self._lock = threading.Lock()

    def read_text(self) -> Optional[str]:
        with self._lock:
            self.reads += 1
            return self.text

    def write_text(self, text: str, label: str = "") -> None:
        with self._lock:
            self.text = text
            self.label = label
            self.writes.append((text, label))

    def user_copy(self, text: Optional[str]):
        """模拟用户复制内容"""
        with self._lock:
            self.text = text
            self.label = None


class MockWildfireClient:
    """模拟Wildfire客户端"""

    def __init__(
        self,
        pages: Optional[List[ConceptPage]] = None,
        fail_on_page: Optional[int] = None,
        vanity_url: str = VANITY_URL,
        vanity_error: Optional[Exception] = None,
        device_error: Optional[Exception] = None,
    ):
        self.pages = pages or []
        self.fail_on_page = fail_on_page
        self.vanity_url = vanity_url
        self.vanity_error = vanity_error
        self.device_error = device_error
        self.device: Optional[Device] = None
        self.list_calls: List[Tuple[str, Optional[str]]] = []
        self.vanity_calls: List[str] = []
        self.device_calls = 0

    async def list_domains(self, kind="domain", cursor=None):
        self.list_calls.append((kind, cursor))
        page_number = len(self.list_calls)
        if self.fail_on_page == page_number:
            raise WildfireApiError("Internal Server Error", status_code=500)
        return self.pages[page_number - 1]

    async def create_vanity(self, original_url):
        self.vanity_calls.append(original_url)
        if self.vanity_error:
            raise self.vanity_error
        return Vanity(vanity_url=self.vanity_url, original_url=original_url)

    async def create_device(self):
        self.device_calls += 1
        if self.device_error:
            raise self.device_error
        return Device(device_id=42, device_token="token-42", device_key="key-42")

    def set_device(self, device):
        self.device = device


@pytest.fixture
def clipboard():
    return MockClipboard()


@pytest.fixture
def client():
    return MockWildfireClient()


@pytest.fixture
def app_config():
    return AppConfig(monitor={"check_interval": 0.01, "min_interval": 0.01})


@pytest.fixture
def amazon_cache():
    return WhitelistCache([Concept(value="amazon.com")])


@pytest_asyncio.fixture
async def service(client, clipboard, app_config, amazon_cache):
    """白名单只含 amazon.com 的监控服务（不启动轮询）"""
    monitor = ClipboardMonitorService(client, clipboard, app_config, cache=amazon_cache)
    yield monitor
    await monitor.cleanup()


@pytest.fixture
def copy_and_settle(service, clipboard):
    """模拟一次用户复制：发出通知、处理匹配、等待改写完成并在主循环中应用结果"""
    async def _copy(text: Optional[str]):
        clipboard.user_copy(text)
        service.notify_clipboard_changed()
        service.process_pending()
        await service.rewriter.wait_idle(timeout=2)
        service.process_pending()
    return _copy


@pytest.fixture
def page_factory():
    return make_page


@pytest.fixture
def client_factory():
    return MockWildfireClient
