"""补全 Provider 集成层。

该包下的模块负责：
- 定义传输抽象接口 (base)。
- 维护默认端点与固定请求参数 (registry)。
- 提供 OpenAI 兼容补全接口的具体实现 (completion_client)。

本包 __init__ 不导入 completion_client，避免与 config.settings 形成循环导入。
"""

from chat_core.providers.base import CompletionTransport
from chat_core.providers.registry import DEFAULT_PROVIDER, ProviderConfig

__all__ = ["CompletionTransport", "DEFAULT_PROVIDER", "ProviderConfig"]
