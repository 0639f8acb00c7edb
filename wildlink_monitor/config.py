"""
配置管理模块

支持：
- 多种配置格式（JSON, YAML, TOML）
- 环境变量覆盖
- 配置验证
- 默认配置生成

配置在启动时加载一次，运行期间不再变化。
"""

import json
import os
import time
from pathlib import Path
from typing import Dict, Optional, Any, Union
from pydantic import BaseModel, ValidationError, field_validator

from .exceptions import ConfigError, ConfigNotFoundError, ConfigValidationError
from .utils import get_config_path, get_logger


class WildfireConfig(BaseModel):
    """Wildfire API配置数据模型"""
    app_id: str = ""
    app_secret: str = ""
    base_url: str = "https://api.wfi.re"
    sender_token: str = ""
    connect_timeout: float = 15.0
    read_timeout: float = 15.0

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """验证API基础URL"""
        if not v or not v.strip():
            raise ValueError('API基础URL不能为空')
        if not v.startswith(('http://', 'https://')):
            raise ValueError('API基础URL必须以http://或https://开头')
        return v.strip().rstrip('/')

    @field_validator('connect_timeout', 'read_timeout')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """验证超时时间"""
        if v <= 0 or v > 300:
            raise ValueError('超时时间必须在0-300秒之间')
        return v


class MonitorConfig(BaseModel):
    """剪贴板监控配置"""
    check_interval: float = 0.5
    min_interval: float = 0.2
    max_interval_multiplier: float = 4.0
    concept_kind: str = "domain"
    clip_label: str = "wild.link"

    @field_validator('check_interval', 'min_interval')
    @classmethod
    def validate_interval(cls, v: float) -> float:
        """验证轮询间隔"""
        if v <= 0 or v > 60:
            raise ValueError('轮询间隔必须在0-60秒之间')
        return v

    @field_validator('max_interval_multiplier')
    @classmethod
    def validate_multiplier(cls, v: float) -> float:
        if v < 1:
            raise ValueError('最大间隔倍数不能小于1')
        return v


class AppConfig(BaseModel):
    """应用配置数据模型"""
    wildfire: WildfireConfig = WildfireConfig()
    monitor: MonitorConfig = MonitorConfig()
    # 设备身份记录文件
    device_file: str = "device.json"
    # 日志配置
    log_level: str = "INFO"
    log_file: Optional[str] = "wildlink_monitor.log"

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f'未知的日志级别: {v}')
        return level


class ConfigManager:
    """配置管理器"""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self.logger = get_logger('ConfigManager')

        if config_path is None:
            self.config_path = get_config_path()
        else:
            self.config_path = Path(config_path)

        self.config: Optional[AppConfig] = None

    async def load_config(self, create_if_missing: bool = True) -> AppConfig:
        """加载配置，必要时创建默认配置文件"""
        start_time = time.time()

        if not self.config_path.exists():
            if not create_if_missing:
                raise ConfigNotFoundError(str(self.config_path))
            self._create_default_config()

        try:
            config_data = self._load_config_file()
            config_data = self._apply_env_overrides(config_data)
            self.config = AppConfig(**config_data)
        except ValidationError as e:
            raise ConfigValidationError(
                f"配置验证失败: {str(e)}",
                [dict(err) for err in e.errors(include_url=False)],
            ) from e
        except ConfigError:
            raise
        except Exception as e:
            raise ConfigError(f"配置加载失败: {str(e)}") from e

        load_time = time.time() - start_time
        self.logger.info(f"配置加载成功: {self.config_path} (耗时: {load_time:.3f}s)")
        return self.config

    def _load_config_file(self) -> Dict[str, Any]:
        """根据文件扩展名加载不同格式的配置文件"""
        suffix = self.config_path.suffix.lower()

        try:
            if suffix == '.toml':
                import tomllib
                with open(self.config_path, 'rb') as f:
                    data = tomllib.load(f)
            else:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    if suffix in ['.yaml', '.yml']:
                        import yaml
                        data = yaml.safe_load(f)
                    else:
                        # 默认按JSON处理
                        data = json.load(f)
        except Exception as e:
            raise ConfigError(f"配置文件格式错误: {str(e)}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError("配置文件顶层必须是对象")
        return data

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """应用环境变量覆盖"""
        wildfire_config = dict(config_data.get('wildfire') or {})
        overrides = {
            'app_id': os.getenv('WILDFIRE_APP_ID'),
            'app_secret': os.getenv('WILDFIRE_APP_SECRET'),
            'base_url': os.getenv('WILDFIRE_BASE_URL'),
        }
        wildfire_config.update({k: v for k, v in overrides.items() if v})
        config_data['wildfire'] = wildfire_config

        log_level = os.getenv('WILDLINK_LOG_LEVEL')
        if log_level:
            config_data['log_level'] = log_level

        return config_data

    def validate_config_file(self, config_path: Optional[Path] = None) -> bool:
        """验证配置文件"""
        path = Path(config_path) if config_path else self.config_path

        try:
            if not path.exists():
                self.logger.error(f"配置文件不存在: {path}")
                return False

            temp_manager = ConfigManager(path)
            config_data = temp_manager._load_config_file()
            config_data = temp_manager._apply_env_overrides(config_data)
            AppConfig(**config_data)

            self.logger.info(f"配置文件验证通过: {path}")
            return True

        except (ConfigError, ValidationError) as e:
            self.logger.error(f"配置文件验证失败: {path}, 错误: {str(e)}")
            return False

    def _create_default_config(self):
        """创建默认配置文件"""
        default_config = {
            "wildfire": {
                "app_id": "",
                "app_secret": "",
                "base_url": "https://api.wfi.re",
                "sender_token": "",
                "connect_timeout": 15.0,
                "read_timeout": 15.0
            },
            "monitor": {
                "check_interval": 0.5,
                "min_interval": 0.2,
                "max_interval_multiplier": 4.0,
                "concept_kind": "domain",
                "clip_label": "wild.link"
            },
            "device_file": "device.json",
            "log_level": "INFO",
            "log_file": "wildlink_monitor.log"
        }

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(default_config, f, indent=4, ensure_ascii=False)
            self.logger.info(f"已创建默认配置文件: {self.config_path}")
        except OSError as e:
            raise ConfigError(f"创建默认配置失败: {str(e)}") from e
