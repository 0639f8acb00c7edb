"""
数据模型

后端返回的数据使用pydantic模型（字段别名对应Wildfire API的大写键名），
进程内的临时记录与主循环消息使用dataclass。
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Concept(BaseModel):
    """合作商户域名片段（白名单条目）"""
    value: str = Field(alias="Value")
    id: Optional[int] = Field(default=None, alias="ID")
    kind: Optional[str] = Field(default=None, alias="Kind")
    url: Optional[str] = Field(default=None, alias="URL")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ConceptPage(BaseModel):
    """一页域名片段及续页游标，最后一页没有游标"""
    concepts: List[Concept] = Field(default_factory=list, alias="Concepts")
    next_cursor: Optional[str] = Field(default=None, alias="NextCursor")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def is_last(self) -> bool:
        return not self.next_cursor


class Vanity(BaseModel):
    """后端返回的 wild.link 短链"""
    vanity_url: str = Field(alias="VanityURL")
    original_url: Optional[str] = Field(default=None, alias="OriginalURL")

    model_config = ConfigDict(populate_by_name=True)


class Device(BaseModel):
    """设备身份记录"""
    device_id: int = Field(alias="DeviceID")
    device_token: str = Field(alias="DeviceToken")
    device_key: str = Field(default="", alias="DeviceKey")

    model_config = ConfigDict(populate_by_name=True)


@dataclass
class ClipboardEvent:
    text: Optional[str]  # None: 剪贴板为空或不是纯文本
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class VanityRequest:
    original_url: str


@dataclass
class VanityResult:
    original_url: str
    vanity_url: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.vanity_url)


@dataclass
class MatchResult:
    kind: str  # not_url, invalid, terminal, no_match, match
    text: Optional[str]
    domain: Optional[str] = None
    concept: Optional[Concept] = None

    @property
    def matched(self) -> bool:
        return self.kind == "match"


@dataclass
class ClipboardChanged:
    """剪贴板内容变化通知，不携带内容"""
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class RewriteCompleted:
    result: VanityResult
