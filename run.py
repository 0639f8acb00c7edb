#!/usr/bin/env python3
"""
Wildlink剪贴板监控器 - 启动脚本

使用方法:
    python run.py start                 # 启动剪贴板监控
    python run.py register-device       # 注册设备
    python run.py validate-config       # 验证配置文件
    python run.py test-connection       # 测试Wildfire API连接
"""

import sys
from pathlib import Path

# 添加项目根目录到Python路径
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from wildlink_monitor.main import cli


if __name__ == "__main__":
    cli()
