"""
统一异常处理模块

定义项目中使用的各种异常类型。后端与解析错误都在发现它们的组件内被捕获，
不会终止监控进程。
"""

from typing import Optional, Any, Dict, List


class WildlinkMonitorError(Exception):
    """项目基础异常类"""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        self.error_code = None

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式，便于日志记录"""
        return {
            "error_type": self.__class__.__name__,
            "message": str(self),
            "details": self.details,
            "error_code": self.error_code,
        }


class ConfigError(WildlinkMonitorError):
    """配置相关异常"""
    pass


class ConfigValidationError(ConfigError):
    """配置验证异常"""

    def __init__(self, message: str, validation_errors: List[Dict[str, Any]]):
        super().__init__(message, details={"validation_errors": validation_errors})
        self.validation_errors = validation_errors
        self.error_code = "CONFIG_VALIDATION_ERROR"


class ConfigNotFoundError(ConfigError):
    """配置文件未找到异常"""

    def __init__(self, config_path: str):
        super().__init__(f"配置文件未找到: {config_path}", details={"path": config_path})
        self.config_path = config_path
        self.error_code = "CONFIG_NOT_FOUND"


class ClipboardError(WildlinkMonitorError):
    """剪贴板访问异常"""

    def __init__(self, message: str, clipboard_type: Optional[str] = None):
        super().__init__(message, details={"clipboard_type": clipboard_type})
        self.clipboard_type = clipboard_type
        self.error_code = "CLIPBOARD_ERROR"


class UrlParseError(WildlinkMonitorError):
    """URL解析异常（无法提取主机名）"""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message, details={"url": url})
        self.url = url
        self.error_code = "URL_PARSE_ERROR"


class WildfireApiError(WildlinkMonitorError):
    """Wildfire后端调用异常基类，携带状态码与消息"""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 url: Optional[str] = None, response_body: Optional[str] = None):
        super().__init__(message, details={
            "status_code": status_code,
            "url": url,
            "response_body": response_body,
        })
        self.status_code = status_code
        self.url = url
        self.response_body = response_body
        self.error_code = "WILDFIRE_API_ERROR"


class NetworkError(WildfireApiError):
    """网络通信异常"""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message, status_code=None, url=url)
        self.error_code = "NETWORK_ERROR"


class NetworkTimeoutError(NetworkError):
    """网络超时异常"""

    def __init__(self, message: str, url: Optional[str] = None, timeout: Optional[float] = None):
        super().__init__(message, url=url)
        self.timeout = timeout
        self.error_code = "NETWORK_TIMEOUT"


class ApiAuthError(WildfireApiError):
    """认证失败（401/403）"""

    def __init__(self, message: str, status_code: int = 401, url: Optional[str] = None,
                 response_body: Optional[str] = None):
        super().__init__(message, status_code, url, response_body)
        self.error_code = "API_AUTH_ERROR"


class ApiRateLimitError(WildfireApiError):
    """API限速异常（429）"""

    def __init__(self, message: str, url: Optional[str] = None, retry_after: Optional[int] = None,
                 response_body: Optional[str] = None):
        super().__init__(message, 429, url, response_body)
        self.retry_after = retry_after
        self.error_code = "API_RATE_LIMIT"


class ApiServerError(WildfireApiError):
    """服务端异常（5xx）"""

    def __init__(self, message: str, status_code: int, url: Optional[str] = None,
                 response_body: Optional[str] = None):
        super().__init__(message, status_code, url, response_body)
        self.error_code = "API_SERVER_ERROR"


class ApiResponseError(WildfireApiError):
    """响应内容无法解析"""

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None,
                 response_body: Optional[str] = None):
        super().__init__(message, status_code, url, response_body)
        self.error_code = "API_RESPONSE_ERROR"


class DeviceRegistrationError(WildfireApiError):
    """设备注册失败，唯一需要提示用户的错误"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code)
        self.error_code = "DEVICE_REGISTRATION_ERROR"
