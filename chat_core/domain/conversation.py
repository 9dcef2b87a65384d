"""内存中的会话存储。

ConversationStore 是界面显示内容的唯一数据源：

- 只追加，唯一的例外是移除加载占位消息。
- 每次修改后向订阅者广播新的不可变快照（tuple）。
- 只有 ExchangeController 会修改它，展示层只订阅、只读。
"""

from typing import Callable, List, Optional, Tuple

from chat_core.domain.models import Message
from chat_core.infrastructure.logging.logger import logger

Snapshot = Tuple[Message, ...]
SnapshotListener = Callable[[Snapshot], None]


class ConversationStore:
    def __init__(self, seed: Optional[Message] = None):
        self._messages: List[Message] = [seed] if seed is not None else []
        self._listeners: List[SnapshotListener] = []

    @property
    def messages(self) -> Snapshot:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def has_loading_placeholder(self) -> bool:
        return any(m.is_loading for m in self._messages)

    def history(self) -> Snapshot:
        """返回不含加载占位消息的快照，用于构造补全请求。"""
        return tuple(m for m in self._messages if not m.is_loading)

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """注册快照监听器，返回取消订阅的函数。"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def append(self, message: Message) -> Snapshot:
        if message.is_loading and self.has_loading_placeholder:
            raise ValueError("conversation already has a loading placeholder")
        self._messages.append(message)
        return self._publish()

    def remove_loading_placeholder(self) -> Snapshot:
        """移除唯一的加载占位消息；不存在时不做任何事，也不广播。"""
        for idx, m in enumerate(self._messages):
            if m.is_loading:
                del self._messages[idx]
                return self._publish()
        return self.messages

    def resolve_loading_placeholder(self, message: Message) -> Snapshot:
        """用 message 替换加载占位消息并只广播一次；没有占位时直接追加。"""
        if message.is_loading:
            raise ValueError("cannot resolve a placeholder with another placeholder")
        for idx, m in enumerate(self._messages):
            if m.is_loading:
                del self._messages[idx]
                break
        self._messages.append(message)
        return self._publish()

    def reset(self, seed: Message) -> Snapshot:
        self._messages = [seed]
        return self._publish()

    def _publish(self) -> Snapshot:
        snapshot = self.messages
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                # 监听器属于展示层，其异常不能打断会话状态的更新
                logger.exception("Conversation listener failed")
        return snapshot
