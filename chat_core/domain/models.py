"""会话消息数据模型。

- Role: 消息角色（用户 / 助手）。
- Message: 会话中的一条消息，创建后不可变。

加载占位消息（placeholder）也是一条 Message：role 为助手、content 为空、
is_loading 为 True，在请求结束时被移除。
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4


class Role(str, Enum):
    """消息角色，取值与补全接口的 role 字段一致。"""

    USER = "user"
    ASSISTANT = "assistant"


def _new_message_id() -> str:
    return f"m-{uuid4().hex}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Message:
    """一条会话消息。

    - id: 创建时分配的唯一标识。
    - content: 文本内容；占位消息为空字符串。
    - role: Role.USER 或 Role.ASSISTANT。
    - timestamp: 创建时间（UTC）。
    - is_loading: 仅占位消息为 True。
    """

    content: str
    role: Role
    is_loading: bool = False
    id: str = field(default_factory=_new_message_id)
    timestamp: datetime = field(default_factory=_utcnow)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(content=content, role=Role.USER)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(content=content, role=Role.ASSISTANT)

    @classmethod
    def placeholder(cls) -> "Message":
        return cls(content="", role=Role.ASSISTANT, is_loading=True)

    @property
    def is_user(self) -> bool:
        return self.role is Role.USER
