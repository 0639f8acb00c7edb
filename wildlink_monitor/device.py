"""
设备注册与持久化

首次运行时向后端注册设备，并以固定键 "device" 保存到本地JSON文件，之后直接复用。
注册失败是唯一需要提示用户的错误。
"""

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from .exceptions import ConfigError, DeviceRegistrationError, WildfireApiError
from .models import Device
from .utils import get_logger

DEVICE_KEY = "device"


class DeviceStore:
    """本地设备身份存储"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.logger = get_logger('DeviceStore')

    def load(self) -> Optional[Device]:
        if not self.path.exists():
            return None

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"读取设备文件失败: {self.path}: {str(e)}") from e

        record = data.get(DEVICE_KEY) if isinstance(data, dict) else None
        if record is None:
            return None

        try:
            return Device.model_validate(record)
        except ValidationError as e:
            raise ConfigError(f"设备文件格式错误: {self.path}: {str(e)}") from e

    def save(self, device: Device):
        data = {}
        if self.path.exists():
            try:
                with open(self.path, 'r', encoding='utf-8') as f:
                    existing = json.load(f)
                if isinstance(existing, dict):
                    data = existing
            except (OSError, ValueError):
                self.logger.warning(f"设备文件无法解析，将被覆盖: {self.path}")

        data[DEVICE_KEY] = device.model_dump(by_alias=True)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=4, ensure_ascii=False)
        self.logger.debug(f"设备信息已保存: {self.path}")


async def ensure_device(client, store: DeviceStore) -> Device:
    """返回已保存的设备；不存在时注册新设备并保存

    Raises:
        DeviceRegistrationError: 注册失败
    """
    logger = get_logger('DeviceBootstrap')

    device = store.load()
    if device is not None:
        client.set_device(device)
        logger.debug(f"使用已保存的设备: {device.device_id}")
        return device

    try:
        device = await client.create_device()
    except WildfireApiError as e:
        raise DeviceRegistrationError(
            f"Error creating device {e.status_code} {e.message}",
            status_code=e.status_code,
        ) from e

    store.save(device)
    client.set_device(device)
    logger.info(f"新设备已注册: {device.device_id}")
    return device
