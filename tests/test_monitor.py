"""
剪贴板监控服务端到端测试

通过模拟剪贴板与模拟Wildfire客户端驱动主循环，不依赖真实平台。
"""

import asyncio

import pytest

from wildlink_monitor.exceptions import WildfireApiError
from wildlink_monitor.models import Concept
from wildlink_monitor.monitor import ClipboardMonitorService
from wildlink_monitor.whitelist import WhitelistCache

from conftest import MockClipboard, MockWildfireClient, VANITY_URL


class CrashingClient(MockWildfireClient):
    """域名列表请求抛出非后端异常的客户端"""

    async def list_domains(self, kind="domain", cursor=None):
        raise RuntimeError("unexpected page shape")


class TestMatchingPass:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["hello world", "amazon.com/deal", None, "ftp://amazon.com"])
    async def test_non_url_makes_no_backend_call(self, service, client, clipboard, copy_and_settle, text):
        await copy_and_settle(text)

        assert client.vanity_calls == []
        assert clipboard.writes == []
        assert clipboard.text == text

    @pytest.mark.asyncio
    async def test_wild_link_is_never_rewritten(self, client, clipboard, app_config):
        cache = WhitelistCache([Concept(value="wild.link"), Concept(value="amazon.com")])
        monitor = ClipboardMonitorService(client, clipboard, app_config, cache=cache)

        clipboard.user_copy("https://www.wild.link/e/amazon.com")
        monitor.notify_clipboard_changed()
        monitor.process_pending()
        await monitor.rewriter.wait_idle(timeout=2)

        assert client.vanity_calls == []
        assert monitor.rewriter.pending == 0

    @pytest.mark.asyncio
    async def test_partner_url_is_rewritten(self, service, client, clipboard, copy_and_settle):
        await copy_and_settle("https://www.amazon.com/deal")

        assert client.vanity_calls == ["https://www.amazon.com/deal"]
        assert clipboard.text == VANITY_URL
        assert clipboard.label == "wild.link"
        assert service.stats['matches'] == 1
        assert service.stats['rewrites_applied'] == 1

    @pytest.mark.asyncio
    async def test_unknown_domain_makes_no_backend_call(self, service, client, clipboard, copy_and_settle):
        await copy_and_settle("https://example.org/page")

        assert client.vanity_calls == []
        assert clipboard.text == "https://example.org/page"

    @pytest.mark.asyncio
    async def test_only_first_match_is_rewritten(self, client, clipboard, app_config):
        cache = WhitelistCache([Concept(value="a.com"), Concept(value="b.com")])
        monitor = ClipboardMonitorService(client, clipboard, app_config, cache=cache)

        clipboard.user_copy("https://a.com/?next=https://b.com")
        monitor.notify_clipboard_changed()
        monitor.process_pending()
        await monitor.rewriter.wait_idle(timeout=2)

        assert client.vanity_calls == ["https://a.com/?next=https://b.com"]

    @pytest.mark.asyncio
    async def test_failed_rewrite_keeps_original_clipboard(self, client_factory, clipboard, app_config, amazon_cache):
        client = client_factory(vanity_error=WildfireApiError("Internal Server Error", status_code=500))
        monitor = ClipboardMonitorService(client, clipboard, app_config, cache=amazon_cache)

        clipboard.user_copy("https://www.amazon.com/deal")
        monitor.notify_clipboard_changed()
        monitor.process_pending()
        await monitor.rewriter.wait_idle(timeout=2)
        monitor.process_pending()

        assert client.vanity_calls == ["https://www.amazon.com/deal"]
        assert clipboard.text == "https://www.amazon.com/deal"
        assert clipboard.writes == []

    @pytest.mark.asyncio
    async def test_rewritten_link_does_not_trigger_again(self, service, client, clipboard, copy_and_settle):
        await copy_and_settle("https://www.amazon.com/deal")

        # 写入 wild.link 后平台再次发出变化通知
        service.notify_clipboard_changed()
        service.process_pending()
        await service.rewriter.wait_idle(timeout=2)

        assert client.vanity_calls == ["https://www.amazon.com/deal"]
        assert clipboard.writes == [(VANITY_URL, "wild.link")]

    @pytest.mark.asyncio
    async def test_each_event_triggers_its_own_pass(self, service, client, clipboard):
        clipboard.user_copy("https://www.amazon.com/deal")
        service.notify_clipboard_changed()
        service.notify_clipboard_changed()
        service.process_pending()
        await service.rewriter.wait_idle(timeout=2)

        assert len(client.vanity_calls) == 2

    @pytest.mark.asyncio
    async def test_listener_rereads_clipboard_on_each_notification(self, service, clipboard):
        clipboard.user_copy("https://example.org/")
        reads_before = clipboard.reads

        service.notify_clipboard_changed()
        service.process_pending()

        assert clipboard.reads == reads_before + 1


async def wait_for_baseline(clipboard):
    """等待轮询器读取启动时的剪贴板基线"""
    async def _wait():
        while clipboard.reads == 0:
            await asyncio.sleep(0.01)
    await asyncio.wait_for(_wait(), timeout=2)


class TestMonitorLoop:

    @pytest.mark.asyncio
    async def test_start_loads_whitelist_and_rewrites_copied_url(self, client_factory, page_factory, app_config):
        client = client_factory(pages=[
            page_factory(["bestbuy.com"], next_cursor="c1"),
            page_factory(["amazon.com"]),
        ])
        clipboard = MockClipboard("some text copied before start")
        monitor = ClipboardMonitorService(client, clipboard, app_config)

        monitor_task = asyncio.create_task(monitor.start())
        try:
            await asyncio.wait_for(monitor.loader.start(), timeout=2)
            assert monitor.cache.values() == ["bestbuy.com", "amazon.com"]
            await wait_for_baseline(clipboard)

            clipboard.user_copy("https://www.amazon.com/dp/B000")

            async def wait_for_rewrite():
                while clipboard.text != VANITY_URL:
                    await asyncio.sleep(0.01)

            await asyncio.wait_for(wait_for_rewrite(), timeout=3)
        finally:
            monitor.stop()
            await asyncio.wait_for(monitor_task, timeout=3)

        assert client.vanity_calls == ["https://www.amazon.com/dp/B000"]
        assert not monitor.is_running
        status = monitor.get_status()
        assert status['whitelist_size'] == 2
        assert status['whitelist_complete'] is True
        assert status['stats']['rewrites_applied'] == 1

    @pytest.mark.asyncio
    async def test_content_present_at_start_is_not_rewritten(self, client_factory, page_factory, app_config):
        client = client_factory(pages=[page_factory(["amazon.com"])])
        clipboard = MockClipboard("https://www.amazon.com/already-there")
        monitor = ClipboardMonitorService(client, clipboard, app_config)

        monitor_task = asyncio.create_task(monitor.start())
        await asyncio.sleep(0.2)
        monitor.stop()
        await asyncio.wait_for(monitor_task, timeout=3)

        assert client.vanity_calls == []
        assert clipboard.text == "https://www.amazon.com/already-there"

    @pytest.mark.asyncio
    async def test_loader_failure_does_not_stop_monitor(self, client_factory, page_factory, app_config):
        client = client_factory(pages=[page_factory(["amazon.com"], next_cursor="c1")], fail_on_page=2)
        clipboard = MockClipboard()
        monitor = ClipboardMonitorService(client, clipboard, app_config)

        monitor_task = asyncio.create_task(monitor.start())
        try:
            await asyncio.wait_for(monitor.loader.start(), timeout=2)
            assert monitor.loader.last_error is not None
            await wait_for_baseline(clipboard)

            clipboard.user_copy("https://www.amazon.com/deal")

            async def wait_for_rewrite():
                while clipboard.text != VANITY_URL:
                    await asyncio.sleep(0.01)

            await asyncio.wait_for(wait_for_rewrite(), timeout=3)
        finally:
            monitor.stop()
            await asyncio.wait_for(monitor_task, timeout=3)

    @pytest.mark.asyncio
    async def test_unexpected_loader_crash_is_logged(self, app_config, caplog):
        clipboard = MockClipboard()
        monitor = ClipboardMonitorService(CrashingClient(), clipboard, app_config)

        monitor_task = asyncio.create_task(monitor.start())
        try:
            with pytest.raises(RuntimeError):
                await asyncio.wait_for(monitor.loader.start(), timeout=2)
            # 让完成回调执行
            await asyncio.sleep(0.05)
            assert monitor.is_running
        finally:
            monitor.stop()
            await asyncio.wait_for(monitor_task, timeout=3)

        assert "白名单加载任务异常退出" in caplog.text
        assert "unexpected page shape" in caplog.text
