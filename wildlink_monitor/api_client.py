"""
Wildfire API 异步客户端

支持：
- 请求签名（WFAV1）
- 连接/读取超时
- 按状态码细分的异常
- 幂等的分页查询自动重试

create_vanity 与 create_device 不做重试，避免重复的外部调用。
"""

import asyncio
import hashlib
import hmac
import json
import logging
import platform
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import aiohttp
from pydantic import BaseModel, ValidationError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)

from .__version__ import __version__
from .config import WildfireConfig
from .exceptions import (
    WildfireApiError, NetworkError, NetworkTimeoutError, ApiAuthError,
    ApiRateLimitError, ApiServerError, ApiResponseError
)
from .models import ConceptPage, Device, Vanity
from .utils import get_logger


class WildfireClient:
    """Wildfire 后端异步客户端"""

    def __init__(self, config: WildfireConfig, device: Optional[Device] = None):
        self.config = config
        self.device = device
        self.session: Optional[aiohttp.ClientSession] = None
        self.logger = get_logger('WildfireClient')
        self._base_url = config.base_url
        self._timeout = aiohttp.ClientTimeout(
            total=None,
            connect=config.connect_timeout,
            sock_read=config.read_timeout,
        )

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def open(self):
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=self._timeout)

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None

    def set_device(self, device: Device):
        self.device = device

    def sign(self, date_time: str) -> str:
        """HMAC-SHA256(app_secret, 时间 + 设备token + 发送者token)，十六进制"""
        device_token = self.device.device_token if self.device else ""
        message = f"{date_time}\n{device_token}\n{self.config.sender_token}\n"
        return hmac.new(
            self.config.app_secret.encode('utf-8'),
            message.encode('utf-8'),
            hashlib.sha256,
        ).hexdigest()

    def build_headers(self, now: Optional[datetime] = None) -> Dict[str, str]:
        now = now or datetime.now(timezone.utc)
        date_time = now.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')
        device_token = self.device.device_token if self.device else ""
        authorization = (
            f"WFAV1 {self.config.app_id}:{self.sign(date_time)}:"
            f"{device_token}:{self.config.sender_token}"
        )
        return {
            'Authorization': authorization,
            'X-WF-DateTime': date_time,
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """发送请求并返回解析后的JSON"""
        await self.open()
        url = f"{self._base_url}{path}"

        try:
            async with self.session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self.build_headers(),
            ) as resp:
                status = resp.status
                retry_after = resp.headers.get('Retry-After')
                charset = resp.charset or 'utf-8'
                raw = await resp.read()
        except asyncio.TimeoutError as e:
            raise NetworkTimeoutError(f"请求超时: {method} {path}", url=url) from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"网络请求错误: {str(e)}", url=url) from e

        self._raise_for_status(status, self._decode(raw, charset, 'replace'), url, retry_after)

        try:
            body = self._decode(raw, charset)
        except UnicodeDecodeError as e:
            raise ApiResponseError(
                f"响应无法按 {charset} 解码: {str(e)}",
                status,
                url,
                self._decode(raw, charset, 'replace')[:500],
            ) from e

        if not body.strip():
            return {}
        try:
            return json.loads(body)
        except ValueError as e:
            raise ApiResponseError(f"响应不是有效的JSON: {str(e)}", status, url, body) from e

    @staticmethod
    def _decode(raw: bytes, charset: str, errors: str = 'strict') -> str:
        try:
            return raw.decode(charset, errors)
        except LookupError:
            # 未知字符集按UTF-8处理
            return raw.decode('utf-8', errors)

    @staticmethod
    def _error_message(body: str) -> str:
        try:
            data = json.loads(body)
        except ValueError:
            return body.strip()[:200]
        if isinstance(data, dict):
            for key in ('ErrorMessage', 'Message', 'message', 'error'):
                if data.get(key):
                    return str(data[key])
        return body.strip()[:200]

    def _raise_for_status(self, status: int, body: str, url: str, retry_after: Optional[str] = None):
        if 200 <= status < 300:
            return

        message = self._error_message(body)
        self.logger.debug(f"请求失败 (HTTP {status}): {url} - {message}")

        if status in (401, 403):
            raise ApiAuthError(f"认证失败: {message}", status, url, body)
        if status == 429:
            seconds = int(retry_after) if retry_after and retry_after.isdigit() else None
            raise ApiRateLimitError(f"请求过于频繁: {message}", url, seconds, body)
        if status >= 500:
            raise ApiServerError(f"服务端错误: {message}", status, url, body)
        raise WildfireApiError(f"请求失败 (HTTP {status}): {message}", status, url, body)

    @staticmethod
    def _parse(model: type, data: Any, url: str) -> BaseModel:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ApiResponseError(
                f"响应格式错误 ({model.__name__}): {str(e)}",
                url=url,
                response_body=json.dumps(data, ensure_ascii=False)[:500],
            ) from e

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
        retry=retry_if_exception_type((NetworkError, ApiRateLimitError)),
        before_sleep=before_sleep_log(logging.getLogger('WildlinkMonitor.WildfireClient.Retry'), logging.INFO),
        reraise=True
    )
    async def list_domains(self, kind: str = "domain", cursor: Optional[str] = None) -> ConceptPage:
        """获取一页域名片段；返回页的 next_cursor 为空表示最后一页"""
        params = {'kind': kind}
        if cursor:
            params['cursor'] = cursor
        data = await self._request('GET', '/v2/concept', params=params)
        return self._parse(ConceptPage, data, f"{self._base_url}/v2/concept")

    async def create_vanity(self, original_url: str) -> Vanity:
        """为原始URL生成 wild.link 短链"""
        data = await self._request('POST', '/v2/vanity', json_body={'URL': original_url})
        return self._parse(Vanity, data, f"{self._base_url}/v2/vanity")

    async def create_device(self) -> Device:
        """注册新设备"""
        body = {
            'OS': platform.system(),
            'OSVersion': platform.release(),
            'Version': __version__,
        }
        data = await self._request('POST', '/v2/device', json_body=body)
        return self._parse(Device, data, f"{self._base_url}/v2/device")
