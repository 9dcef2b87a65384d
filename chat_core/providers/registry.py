"""Provider 默认配置。

补全请求的固定参数（temperature、max_tokens）与默认端点集中在这里，
设置模块的默认值和“恢复默认”动作都从这里取值。"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProviderConfig:
    """某个 OpenAI 兼容 Provider 的默认配置。"""

    name: str
    base_url: str
    default_model: str
    api_key_placeholder: str = "YOUR_API_KEY"
    temperature: float = 0.7
    max_tokens: int = 1000


OPENROUTER_CONFIG = ProviderConfig(
    name="openrouter",
    base_url="https://openrouter.ai/api/v1/chat/completions",
    default_model="deepseek/deepseek-r1:free",
)

DEFAULT_PROVIDER = OPENROUTER_CONFIG
