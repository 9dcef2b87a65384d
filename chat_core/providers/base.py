"""补全传输抽象接口。

ExchangeController 不直接依赖具体的 HTTP 客户端，而是依赖此协议：

- 生产环境使用 CompletionClient（OpenAI 兼容 chat/completions 接口）。
- 测试中注入任意实现了 complete() 的替身对象。
"""

from typing import Protocol, Sequence

from chat_core.domain.models import Message


class CompletionTransport(Protocol):
    """补全传输协议。

    实现者需要提供：
    - name: Provider 名称，用于日志。
    - complete(history): 执行一次非流式补全，返回助手文本；
      失败时抛出 TransportError 的子类。
    """

    name: str

    async def complete(self, history: Sequence[Message]) -> str:
        ...
