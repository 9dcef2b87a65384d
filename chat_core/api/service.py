"""对外服务模块。

为展示层提供简化接口：发送消息、新建会话、编辑/恢复/保存设置、
读取消息快照与导出会话。展示层只通过这里与控制器交互。
"""

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from chat_core.agents.exchange_controller import ExchangeController
from chat_core.config.settings import ChatSettings, settings
from chat_core.domain.exceptions import BusinessError
from chat_core.domain.models import Message
from chat_core.infrastructure.logging.logger import logger
from chat_core.infrastructure.storage import settings_store, transcript
from chat_core.providers.base import CompletionTransport
from chat_core.providers.completion_client import CompletionClient


def create_transport(cfg: Optional[ChatSettings] = None) -> CompletionTransport:
    """根据配置创建补全传输实例，默认使用全局 settings。"""

    return CompletionClient(cfg or settings)


class ChatService:
    def __init__(
        self,
        cfg: Optional[ChatSettings] = None,
        transport: Optional[CompletionTransport] = None,
    ):
        self.settings = cfg or settings
        self.controller = ExchangeController(
            transport=transport or create_transport(self.settings),
            language=self.settings.language,
        )

    # ---- 会话 ----

    async def send(self, text: Optional[str] = None) -> bool:
        return await self.controller.send_message(text)

    def new_chat(self) -> None:
        self.controller.new_chat()

    def messages(self) -> List[Dict[str, Any]]:
        """当前会话的可渲染快照（包含加载占位）。"""
        return [
            {
                "id": m.id,
                "role": m.role.value,
                "content": m.content,
                "timestamp": m.timestamp.isoformat(),
                "is_loading": m.is_loading,
            }
            for m in self.controller.store.messages
        ]

    def subscribe(self, listener: Callable[[tuple[Message, ...]], None]) -> Callable[[], None]:
        return self.controller.store.subscribe(listener)

    # ---- 设置 ----

    def update_settings(self, **fields: Any) -> None:
        """修改请求配置或语言；未知字段抛出 KeyError，非法取值抛出 BusinessError。"""
        for key, value in fields.items():
            if key not in settings_store.PERSISTED_FIELDS:
                raise KeyError(f"Unknown setting: {key!r}")
            try:
                setattr(self.settings, key, value)
            except ValidationError as e:
                raise BusinessError(code="SETTINGS_INVALID", message=str(e))
        if "language" in fields:
            self.controller.set_language(self.settings.language)
        logger.info("Settings updated", extra={"extra": {"fields": sorted(fields)}})

    def reset_settings(self) -> None:
        self.settings.reset_to_defaults()
        logger.info("Settings reset to defaults")

    def load_settings(self, path: str | Path | None = None) -> None:
        settings_store.load_settings(path, base=self.settings)
        self.controller.set_language(self.settings.language)

    def save_settings(self, path: str | Path | None = None) -> Path:
        return settings_store.save_settings(self.settings, path)

    # ---- 导出 ----

    def export_markdown(self) -> str:
        return transcript.to_markdown(self.controller.store.messages)

    def export_json(self, path: str | Path) -> Path:
        return transcript.export_json(self.controller.store.messages, path)


_service: Optional[ChatService] = None


def get_default_service() -> ChatService:
    """获取默认的 ChatService 实例（单例）。"""
    global _service
    if _service is None:
        _service = ChatService()
    return _service
