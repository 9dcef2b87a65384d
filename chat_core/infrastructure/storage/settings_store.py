"""设置界面的显式持久化。

只在进程边界调用：启动时 load_settings，用户点击保存时 save_settings。
文件为 YAML，只保存请求配置与语言，写入使用临时文件 + os.replace。
"""

import os
from pathlib import Path
from typing import Any, Dict
from uuid import uuid4

import yaml
from pydantic import ValidationError

from chat_core.config.settings import ChatSettings, settings
from chat_core.domain.exceptions import BusinessError

PERSISTED_FIELDS = ("base_url", "api_key", "model_name", "language")


def load_settings(path: str | Path | None = None, base: ChatSettings | None = None) -> ChatSettings:
    """读取保存的设置并覆盖到 base 上（默认为全局 settings），返回 base。

    文件不存在时不做任何修改。
    """
    target = base if base is not None else settings
    p = Path(path or target.settings_file)
    if not p.exists():
        return target
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise BusinessError(code="SETTINGS_READ_ERROR", message=str(e))
    if not isinstance(data, dict):
        raise BusinessError(code="SETTINGS_READ_ERROR", message=f"{p} is not a mapping")
    try:
        for key in PERSISTED_FIELDS:
            if key in data and data[key] is not None:
                setattr(target, key, str(data[key]))
    except ValidationError as e:
        raise BusinessError(code="SETTINGS_INVALID", message=str(e))
    return target


def save_settings(cfg: ChatSettings | None = None, path: str | Path | None = None) -> Path:
    target = cfg if cfg is not None else settings
    p = Path(path or target.settings_file)
    obj: Dict[str, Any] = {key: getattr(target, key) for key in PERSISTED_FIELDS}
    tmp_path = p.parent / f"{p.name}.{uuid4().hex}.tmp"
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(yaml.safe_dump(obj, allow_unicode=True, sort_keys=False), encoding="utf-8")
        os.replace(tmp_path, p)
    except OSError as e:
        raise BusinessError(code="SETTINGS_WRITE_ERROR", message=str(e))
    return p
