"""
通用工具函数模块

包含：
- 日志配置
- 配置文件路径查找
"""

import logging
import os
from pathlib import Path
from typing import Optional

LOGGER_NAME = 'WildlinkMonitor'


def get_logger(component: str) -> logging.Logger:
    """获取组件日志记录器（挂在 WildlinkMonitor 之下）"""
    return logging.getLogger(f'{LOGGER_NAME}.{component}')


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """配置日志系统"""
    logger = logging.getLogger(LOGGER_NAME)

    # 避免重复配置
    if logger.handlers:
        return logger

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"无法创建日志文件 {log_file}: {str(e)}")

    return logger


def get_config_path() -> Path:
    """获取默认配置文件路径"""
    config_path = os.getenv('WILDLINK_CONFIG')
    if config_path:
        return Path(config_path)

    current_dir = Path.cwd()
    config_files = ['config.json', 'config.yaml', 'config.yml', 'config.toml']

    for config_file in config_files:
        config_path = current_dir / config_file
        if config_path.exists():
            return config_path

    # 默认返回JSON配置文件路径
    return current_dir / 'config.json'
