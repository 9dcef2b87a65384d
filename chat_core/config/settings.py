"""配置管理模块。

支持从环境变量（CHAT_ 前缀）、.env 以及 config.yaml 加载配置。

ChatSettings 实例以引用方式传入 CompletionClient，设置界面对它的修改
在下一次请求时生效；持久化由 infrastructure.storage.settings_store
在进程边界显式完成。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Literal

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from chat_core.providers.registry import DEFAULT_PROVIDER


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("CHAT_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.append(Path.cwd() / "config.yaml")

    seen: set[Path] = set()
    for path in candidates:
        if path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class ChatSettings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- 请求配置（设置界面可编辑）----
    base_url: str = Field(
        default=DEFAULT_PROVIDER.base_url,
        description="补全接口完整 URL",
    )
    api_key: str = Field(
        default=DEFAULT_PROVIDER.api_key_placeholder,
        description="Bearer 认证使用的 API 密钥，不做校验",
    )
    model_name: str = Field(
        default=DEFAULT_PROVIDER.default_model,
        description="请求体中的 model 字段",
    )

    # ---- 运行时配置 ----
    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒）")
    language: Literal["en", "zh", "ja"] = Field(default="en", description="问候语与错误提示的语言")
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否截断日志内容")
    settings_file: str = Field(default="chat_settings.yaml", description="设置界面保存的文件")

    model_config = SettingsConfigDict(
        env_prefix="CHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=(),
        validate_assignment=True,
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )

    def reset_to_defaults(self) -> None:
        """恢复 base_url / api_key / model_name 三项默认值。"""
        self.base_url = DEFAULT_PROVIDER.base_url
        self.api_key = DEFAULT_PROVIDER.api_key_placeholder
        self.model_name = DEFAULT_PROVIDER.default_model

    def request_fields(self) -> Dict[str, str]:
        return {
            "base_url": self.base_url,
            "api_key": self.api_key,
            "model_name": self.model_name,
        }


settings = ChatSettings()
