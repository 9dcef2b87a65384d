"""会话导出。

导出是用户显式触发的一次性动作，不会被重新加载，因此不构成会话持久化。
加载占位消息不会出现在导出结果中。
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Sequence
from uuid import uuid4

from chat_core.domain.exceptions import BusinessError
from chat_core.domain.models import Message, Role

_ROLE_TITLES = {Role.USER: "User", Role.ASSISTANT: "Assistant"}


def message_to_dict(message: Message) -> Dict[str, Any]:
    return {
        "id": message.id,
        "role": message.role.value,
        "content": message.content,
        "timestamp": message.timestamp.isoformat().replace("+00:00", "Z"),
    }


def to_markdown(messages: Sequence[Message], title: str = "Chat transcript") -> str:
    lines: List[str] = [f"# {title}", ""]
    for m in messages:
        if m.is_loading:
            continue
        stamp = m.timestamp.strftime("%Y-%m-%d %H:%M:%S")
        lines.append(f"**{_ROLE_TITLES[m.role]}** ({stamp} UTC)")
        lines.append("")
        lines.append(m.content)
        lines.append("")
    return "\n".join(lines)


def export_json(messages: Sequence[Message], path: str | Path) -> Path:
    p = Path(path)
    items = [message_to_dict(m) for m in messages if not m.is_loading]
    tmp_path = p.parent / f"{p.name}.{uuid4().hex}.tmp"
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(json.dumps(items, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp_path, p)
    except OSError as e:
        raise BusinessError(code="EXPORT_WRITE_ERROR", message=str(e))
    return p
