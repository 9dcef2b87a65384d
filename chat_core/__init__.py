"""Chat Core 顶层包。

该包提供聊天界面的核心实现：配置加载、消息模型、可订阅的会话存储、
OpenAI 兼容补全客户端，以及负责单次请求/响应回合的交换控制器。
渲染与布局由外部展示层负责。
"""

from chat_core.agents.exchange_controller import ExchangeController, ExchangeState
from chat_core.api.service import ChatService, get_default_service

__all__ = ["ChatService", "ExchangeController", "ExchangeState", "get_default_service"]
