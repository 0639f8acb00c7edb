"""主程序模块

支持：
- CLI界面
- 设备注册
- 优雅关闭
- 信号处理
- 状态报告
"""

import asyncio
import signal
import sys
import logging
from typing import Optional
import click

from .__version__ import __version__
from .api_client import WildfireClient
from .clipboard import PyperclipClipboard
from .config import ConfigManager, AppConfig
from .device import DeviceStore, ensure_device
from .exceptions import ConfigError, DeviceRegistrationError, WildfireApiError
from .monitor import ClipboardMonitorService
from .utils import setup_logging, get_config_path


class WildlinkMonitorApp:
    """主应用程序类"""

    def __init__(self, config_path: Optional[str] = None, log_level: Optional[str] = None):
        self.config_path = config_path
        self.log_level = log_level
        self.config_manager: Optional[ConfigManager] = None
        self.config: Optional[AppConfig] = None
        self.client: Optional[WildfireClient] = None
        self.monitor: Optional[ClipboardMonitorService] = None
        self.logger: Optional[logging.Logger] = None
        self.shutdown_event = asyncio.Event()
        self.status_interval = 300

    async def initialize(self):
        """初始化应用程序"""
        self.config_manager = ConfigManager(self.config_path)
        self.config = await self.config_manager.load_config()

        self.logger = setup_logging(
            level=self.log_level or self.config.log_level,
            log_file=self.config.log_file
        )

        self.client = WildfireClient(self.config.wildfire)
        await self.client.open()

        # 只需在首次运行时注册一次设备
        store = DeviceStore(self.config.device_file)
        await ensure_device(self.client, store)

        self.monitor = ClipboardMonitorService(self.client, PyperclipClipboard(), self.config)
        self.logger.info("应用程序初始化完成")

    async def start(self):
        """启动应用程序"""
        try:
            await self.initialize()

            self.logger.info("=" * 60)
            self.logger.info(f"Wildlink剪贴板监控工具启动 v{__version__}")
            self.logger.info(f"配置文件: {self.config_manager.config_path}")
            self.logger.info(f"Wildfire API: {self.config.wildfire.base_url}")
            self.logger.info(f"监控间隔: {self.config.monitor.check_interval}秒")
            self.logger.info("=" * 60)

            self._setup_signal_handlers()

            monitor_task = asyncio.create_task(self.monitor.start())
            status_task = asyncio.create_task(self._status_reporter())

            await self.shutdown_event.wait()
            self.logger.info("收到关闭信号，正在优雅关闭...")

            self.monitor.stop()
            try:
                await asyncio.wait_for(monitor_task, timeout=10.0)
            except asyncio.TimeoutError:
                self.logger.warning("监控任务未能在超时时间内停止")

            status_task.cancel()
            try:
                await status_task
            except asyncio.CancelledError:
                pass

            self.logger.info("应用程序已安全关闭")

        except ConfigError as e:
            self._report_error(f"配置错误: {str(e)}")
            sys.exit(1)

        except DeviceRegistrationError as e:
            self._report_error(str(e))
            sys.exit(1)

        finally:
            await self.cleanup()

    def _report_error(self, message: str):
        if self.logger:
            self.logger.error(message)
        click.echo(f"❌ {message}", err=True)

    async def cleanup(self):
        """清理所有资源"""
        if self.client:
            await self.client.close()
        if self.logger:
            self.logger.info("应用程序资源清理完成")

    def _setup_signal_handlers(self):
        """设置信号处理器"""
        loop = asyncio.get_running_loop()

        def signal_handler(signum, frame):
            self.logger.info(f"收到信号 {signum}")
            loop.call_soon_threadsafe(self.shutdown_event.set)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    async def _status_reporter(self):
        """状态报告器"""
        try:
            while not self.shutdown_event.is_set():
                await asyncio.sleep(self.status_interval)

                if self.monitor:
                    status = self.monitor.get_status()
                    self.logger.info(
                        f"状态报告 - "
                        f"白名单: {status['whitelist_size']}, "
                        f"剪贴板变化: {status['stats']['clipboard_changes']}, "
                        f"匹配: {status['stats']['matches']}, "
                        f"已改写: {status['stats']['rewrites_applied']}"
                    )

        except asyncio.CancelledError:
            pass


# CLI命令
@click.group()
@click.version_option(version=__version__)
def cli():
    """Wildlink剪贴板监控工具"""
    pass


@cli.command()
@click.option('--config', '-c', type=click.Path(exists=True),
              help='配置文件路径')
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              default=None, help='日志级别（默认使用配置文件）')
def start(config: Optional[str], log_level: Optional[str]):
    """启动监控服务"""
    app = WildlinkMonitorApp(config, log_level)

    try:
        asyncio.run(app.start())
    except KeyboardInterrupt:
        click.echo("\n监控已停止")


@cli.command()
@click.option('--config', '-c', type=click.Path(exists=True),
              help='配置文件路径')
def register_device(config: Optional[str]):
    """注册设备（已注册时直接复用）"""
    async def register():
        config_manager = ConfigManager(config)
        app_config = await config_manager.load_config()
        async with WildfireClient(app_config.wildfire) as client:
            return await ensure_device(client, DeviceStore(app_config.device_file))

    try:
        device = asyncio.run(register())
        click.echo(f"✅ 设备已就绪: {device.device_id}")
    except (ConfigError, DeviceRegistrationError) as e:
        click.echo(f"❌ {str(e)}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--config', '-c', type=click.Path(exists=True),
              help='配置文件路径')
def validate_config(config: Optional[str]):
    """验证配置文件"""
    config_path = config or get_config_path()

    try:
        config_manager = ConfigManager(config_path)
        config_data = asyncio.run(config_manager.load_config(create_if_missing=False))
        click.echo(f"✅ 配置文件验证通过: {config_path}")
        click.echo(f"   - Wildfire API: {config_data.wildfire.base_url}")
        click.echo(f"   - 应用ID: {config_data.wildfire.app_id or '(未设置)'}")
        click.echo(f"   - 监控间隔: {config_data.monitor.check_interval}秒")

    except ConfigError as e:
        click.echo(f"❌ 配置文件验证失败: {str(e)}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--config', '-c', type=click.Path(exists=True),
              help='配置文件路径')
def test_connection(config: Optional[str]):
    """测试Wildfire API连接（获取第一页合作商户域名）"""
    async def test():
        config_manager = ConfigManager(config)
        app_config = await config_manager.load_config()

        click.echo("正在测试Wildfire API连接...")
        async with WildfireClient(app_config.wildfire) as client:
            await ensure_device(client, DeviceStore(app_config.device_file))
            page = await client.list_domains(kind=app_config.monitor.concept_kind)
            click.echo(f"✅ 连接成功！第一页域名数量: {len(page.concepts)}")
            if page.next_cursor:
                click.echo("   还有更多分页")

    try:
        asyncio.run(test())
    except (ConfigError, WildfireApiError) as e:
        click.echo(f"❌ 连接失败: {str(e)}", err=True)
        sys.exit(1)


@cli.command()
def create_config():
    """创建默认配置文件"""
    config_path = get_config_path()

    if config_path.exists():
        if not click.confirm(f"配置文件 {config_path} 已存在，是否覆盖？"):
            return

    try:
        config_manager = ConfigManager(config_path)
        config_manager._create_default_config()
        click.echo(f"✅ 默认配置文件已创建: {config_path}")
        click.echo("请编辑配置文件并设置：")
        click.echo("   - Wildfire 应用ID (app_id)")
        click.echo("   - Wildfire 应用密钥 (app_secret)")

    except ConfigError as e:
        click.echo(f"❌ 创建配置文件失败: {str(e)}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
