"""对话交换控制器。

负责一次用户回合的完整流程：追加用户消息、追加加载占位、调用补全传输、
以回复（或固定的错误提示）替换加载占位，并只广播一次快照。

状态机：IDLE -> AWAITING_RESPONSE -> IDLE。同一时刻最多只有一个请求在途，
忙碌期间的 send_message 会被拒绝；new_chat() 会使在途回合的令牌失效，
过期的响应到达后直接丢弃。
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from chat_core import prompts
from chat_core.domain.conversation import ConversationStore
from chat_core.domain.exceptions import BusinessError, TransportError
from chat_core.domain.models import Message
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.base import CompletionTransport

InputListener = Callable[[str], None]
StateListener = Callable[["ExchangeState"], None]


class ExchangeState(str, Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"


class TurnToken:
    """单个回合的取消令牌。"""

    def __init__(self, turn_id: str):
        self.turn_id = turn_id
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ExchangeController:
    def __init__(
        self,
        transport: CompletionTransport,
        store: Optional[ConversationStore] = None,
        language: str = prompts.DEFAULT_LOCALE,
    ):
        self._transport = transport
        self._language = prompts.normalize_locale(language)
        if store is None:
            store = ConversationStore(seed=Message.assistant(prompts.greeting(self._language)))
        self._store = store
        self._state = ExchangeState.IDLE
        self._active: Optional[TurnToken] = None
        self._input_text = ""
        self._input_listeners: List[InputListener] = []
        self._state_listeners: List[StateListener] = []
        self.last_error: Optional[BusinessError] = None

    # ---- 只读状态 ----

    @property
    def store(self) -> ConversationStore:
        return self._store

    @property
    def state(self) -> ExchangeState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._state is ExchangeState.AWAITING_RESPONSE

    @property
    def language(self) -> str:
        return self._language

    @property
    def input_text(self) -> str:
        return self._input_text

    # ---- 展示层输入 ----

    def set_input(self, text: str) -> None:
        self._input_text = text

    def set_language(self, language: str) -> None:
        """切换问候语与错误提示的语言，对之后的回合和新会话生效。"""
        self._language = prompts.normalize_locale(language)

    def subscribe_input(self, listener: InputListener) -> Callable[[], None]:
        """订阅输入框文本变化（发送后会收到空字符串）。"""
        return self._add_listener(self._input_listeners, listener)

    def subscribe_state(self, listener: StateListener) -> Callable[[], None]:
        return self._add_listener(self._state_listeners, listener)

    # ---- 操作 ----

    async def send_message(self, text: Optional[str] = None) -> bool:
        """执行一个用户回合。

        Args:
            text: 用户输入；为 None 时使用当前输入缓冲区。

        Returns:
            回合被接受时返回 True；空输入或忙碌时返回 False。
        """
        content = self._input_text if text is None else text
        if not content or not content.strip():
            return False
        if self.is_busy:
            logger.warning("Rejected message while awaiting response", extra={"extra": {
                "turn_id": self._active.turn_id if self._active else None,
            }})
            return False

        token = TurnToken(turn_id=f"t-{uuid4().hex}")
        log_ctx: Dict[str, Any] = {"turn_id": token.turn_id, "provider": self._transport.name}
        self._store.append(Message.user(content))
        self._store.append(Message.placeholder())
        self._active = token
        self._set_state(ExchangeState.AWAITING_RESPONSE)
        self._clear_input()

        history = self._store.history()
        self._log(logging.INFO, "Calling transport", log_ctx, message_count=len(history))
        start_time = time.time()
        reply: Optional[str] = None
        error: Optional[BusinessError] = None
        try:
            reply = await self._transport.complete(history)
        except TransportError as e:
            error = e
        except asyncio.CancelledError:
            if not token.cancelled:
                self._store.remove_loading_placeholder()
                self._active = None
                self._set_state(ExchangeState.IDLE)
            raise
        except Exception as e:
            logger.exception("Transport raised an unexpected error", extra={"extra": log_ctx})
            error = BusinessError(code="UNEXPECTED_ERROR", message=repr(e), http_status=500)
        elapsed = round(time.time() - start_time, 2)

        if token.cancelled:
            self._log(logging.INFO, "Discarded stale response", log_ctx, elapsed_seconds=elapsed)
            return True

        if error is None:
            self._store.resolve_loading_placeholder(Message.assistant(reply))
            self._log(logging.INFO, "Completed turn", log_ctx, elapsed_seconds=elapsed)
        else:
            self.last_error = error
            self._store.resolve_loading_placeholder(Message.assistant(prompts.error_notice(self._language)))
            self._log(
                logging.ERROR,
                "Turn failed",
                log_ctx,
                elapsed_seconds=elapsed,
                error_type=type(error).__name__,
                error_code=error.code,
                http_status=error.http_status,
                error=error.message,
            )
        self._active = None
        self._set_state(ExchangeState.IDLE)
        return True

    def new_chat(self) -> None:
        """丢弃当前会话并以问候语重新开始；在途请求的结果将被忽略。"""
        if self._active is not None:
            self._active.cancel()
            self._log(logging.INFO, "Cancelled in-flight turn", {"turn_id": self._active.turn_id})
            self._active = None
        self.last_error = None
        self._store.reset(Message.assistant(prompts.greeting(self._language)))
        self._set_state(ExchangeState.IDLE)

    # ---- 内部方法 ----

    def _clear_input(self) -> None:
        self._input_text = ""
        self._notify(self._input_listeners, "")

    def _set_state(self, state: ExchangeState) -> None:
        if state is self._state:
            return
        self._state = state
        self._notify(self._state_listeners, state)

    @staticmethod
    def _add_listener(listeners: List[Callable], listener: Callable) -> Callable[[], None]:
        listeners.append(listener)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    @staticmethod
    def _notify(listeners: List[Callable], value: Any) -> None:
        for listener in list(listeners):
            try:
                listener(value)
            except Exception:
                logger.exception("Controller listener failed")

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
