"""OpenAI 兼容补全接口适配器。

- URL: settings.base_url（完整的 chat/completions 地址）
- 认证: Authorization: Bearer <api_key>

只使用公共字段：model/messages/stream/temperature/max_tokens；
每次调用只发出一次 POST，不重试，不流式。
"""

import json
import logging
from typing import Any, Dict, Sequence

import httpx

from chat_core.config.settings import settings
from chat_core.domain.exceptions import ApiError, InvalidFormatError, NetworkError, RateLimitError
from chat_core.domain.models import Message
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.registry import DEFAULT_PROVIDER, ProviderConfig


class CompletionClient:
    """补全客户端实现。

    cfg 以引用方式持有，每次请求读取当前的 base_url / api_key / model_name。
    """

    name = DEFAULT_PROVIDER.name

    def __init__(self, cfg=settings, provider: ProviderConfig = DEFAULT_PROVIDER):
        self._settings = cfg
        self._provider = provider

    async def complete(self, history: Sequence[Message]) -> str:
        payload = self._build_payload(history)
        try:
            body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise InvalidFormatError(code="REQUEST_ENCODE_ERROR", message=str(e))

        url = self._settings.base_url
        logger.log(
            logging.INFO,
            "Sending completion request",
            extra={"extra": {"url": url, "model": payload["model"], "message_count": len(payload["messages"])}},
        )
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(
                    url,
                    content=body,
                    headers={
                        "Authorization": f"Bearer {self._settings.api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__, http_status=503)

        logger.log(logging.INFO, "Completion response", extra={"extra": {"status": resp.status_code}})
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message=resp.text, http_status=429)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise InvalidFormatError(code="RESPONSE_DECODE_ERROR", message=str(e))
        return self._parse_response(data)

    # ---- 辅助方法 ----

    def _build_payload(self, history: Sequence[Message]) -> Dict[str, Any]:
        msgs = [self._message_to_payload(m) for m in history if not m.is_loading]
        return {
            "model": self._settings.model_name,
            "messages": msgs,
            "stream": False,
            "temperature": self._provider.temperature,
            "max_tokens": self._provider.max_tokens,
        }

    @staticmethod
    def _message_to_payload(message: Message) -> Dict[str, Any]:
        return {"role": message.role.value, "content": message.content}

    @staticmethod
    def _parse_response(data: Any) -> str:
        if not isinstance(data, dict):
            raise InvalidFormatError(code="RESPONSE_DECODE_ERROR", message="response body is not an object")
        choices = data.get("choices")
        if choices is None:
            choices = []
        if not isinstance(choices, list):
            raise InvalidFormatError(code="RESPONSE_DECODE_ERROR", message="choices is not a list")
        if not choices:
            raise ApiError(code="EMPTY_RESPONSE", message="empty response", http_status=502)

        first = choices[0]
        msg = first.get("message") if isinstance(first, dict) else None
        content = msg.get("content") if isinstance(msg, dict) else None
        if not isinstance(content, str):
            raise InvalidFormatError(code="RESPONSE_DECODE_ERROR", message="choice has no message content")
        return content
