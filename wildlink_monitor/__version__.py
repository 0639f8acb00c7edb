"""
版本信息管理模块
提供统一的版本信息管理，避免硬编码版本号
"""

__version__ = "1.0.0"
__version_info__ = (1, 0, 0)

# 项目元数据
PROJECT_NAME = "wildlink-monitor"
PROJECT_DESCRIPTION = "剪贴板合作商户链接监控与 wild.link 自动改写工具"
AUTHOR = "Wildlink Monitor Team"
LICENSE = "MIT"

# 版本类型标识
VERSION_TYPE = "stable"  # stable, beta, alpha, rc


def get_version_string():
    """获取版本字符串"""
    version = __version__
    if VERSION_TYPE != "stable":
        version += f"-{VERSION_TYPE}"
    return version


__all__ = [
    "__version__",
    "__version_info__",
    "PROJECT_NAME",
    "PROJECT_DESCRIPTION",
    "AUTHOR",
    "get_version_string",
]
