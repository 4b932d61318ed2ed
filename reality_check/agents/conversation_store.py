"""会话状态核心。

ConversationStore 持有有序消息记录、在途标记 pending 与最近错误 last_error，
只通过 submit / clear 两个操作修改状态：

- submit 接受后立刻追加用户消息并置 pending，再在事件循环上调度一次 reframe；
  调用结束后恰好追加一条 model 消息（正常回答或描述错误的消息），并清除 pending。
- pending 期间的 submit 直接忽略，这是唯一的准入控制。
- clear 不取消在途请求，请求结束时的回复仍会追加到当时的记录上。
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional
from uuid import uuid4

from reality_check.config.settings import settings
from reality_check.domain.conversation import MessageLog, Reframer, SnapshotListener
from reality_check.domain.exceptions import ReframeError, UpstreamError
from reality_check.domain.models import ConversationSnapshot, Message, MessageRole
from reality_check.infrastructure.logging.logger import logger
from reality_check.infrastructure.storage.memory_store import InMemoryMessageLog


FAILURE_TEMPLATE = "Oops! I encountered an issue: {message} Please try again."
_FAILURE_LOG_LEVELS = {
    "configuration": logging.WARNING,
    "empty_response": logging.WARNING,
    "upstream": logging.ERROR,
}


class ConversationStore:
    def __init__(
        self,
        reframer: Reframer,
        log: Optional[MessageLog] = None,
        max_input_chars: Optional[int] = None,
    ):
        self._reframer = reframer
        self._log = log if log is not None else InMemoryMessageLog()
        self._max_input_chars = max_input_chars or getattr(settings, "max_input_chars", 1000)
        self._pending = False
        self._last_error: Optional[str] = None
        self._listeners: List[SnapshotListener] = []
        self._task: Optional["asyncio.Task[None]"] = None
        self.session_id = f"s-{uuid4().hex}"

    # ---- 只读视图 ----

    @property
    def messages(self) -> List[Message]:
        return self._log.list_messages()

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def in_flight(self) -> Optional["asyncio.Task[None]"]:
        """当前在途的 reframe 任务，store 持有强引用直到其结束。"""
        return self._task

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def snapshot(self) -> ConversationSnapshot:
        return ConversationSnapshot(
            messages=tuple(self._log.list_messages()),
            pending=self._pending,
            last_error=self._last_error,
        )

    def subscribe(self, listener: SnapshotListener):
        """注册状态变化回调，返回取消订阅函数。"""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---- 操作 ----

    def submit(self, text: str) -> Optional["asyncio.Task[None]"]:
        """提交一条用户输入。

        输入为空（去除空白后）或已有请求在途时不做任何修改，返回 None；
        否则返回负责本次调用的 asyncio.Task。必须在运行中的事件循环里调用。
        """
        content = (text or "").strip()
        if not content:
            return None
        if self._pending:
            self._log_event(logging.INFO, "Submission ignored while pending")
            return None
        # 先取事件循环，没有运行中的循环时不修改任何状态
        loop = asyncio.get_running_loop()

        if len(content) > self._max_input_chars:
            self._log_event(
                logging.WARNING,
                "Truncated user input",
                original_chars=len(content),
                max_input_chars=self._max_input_chars,
            )
            content = content[: self._max_input_chars]

        user_msg = self._log.append(MessageRole.USER, content)
        self._pending = True
        self._last_error = None
        self._log_event(logging.INFO, "Accepted user message", message_id=user_msg.id)
        # 先建任务再通知，监听器出错也不会丢掉本次回复
        task = loop.create_task(self._resolve(content))
        task.add_done_callback(self._on_task_done)
        self._task = task
        self._notify()
        return task

    def clear(self) -> None:
        """清空消息与错误，不影响 pending，也不取消在途请求。"""

        dropped = len(self._log)
        self._log.clear()
        self._last_error = None
        self._log_event(logging.INFO, "Cleared conversation", dropped=dropped, pending=self._pending)
        self._notify()

    # ---- 内部 ----

    async def _resolve(self, content: str) -> None:
        try:
            answer = await self._reframer.reframe(content)
        except ReframeError as e:
            self._record_failure(e)
        except Exception as e:  # noqa: BLE001 - 异常必须转为会话中的错误消息
            logger.exception("Unexpected reframe failure", extra={"extra": {"session_id": self.session_id}})
            self._record_failure(UpstreamError(code="UNKNOWN_ERROR", message=str(e) or type(e).__name__))
        else:
            model_msg = self._log.append(MessageRole.MODEL, answer)
            self._log_event(logging.INFO, "Stored model message", message_id=model_msg.id)
        finally:
            self._pending = False
            self._task = None
            self._notify()

    def _on_task_done(self, task: "asyncio.Task[None]") -> None:
        if task.cancelled():
            self._log_event(logging.WARNING, "Reframe task cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Reframe task failed", exc_info=exc, extra={"extra": {"session_id": self.session_id}})

    def _record_failure(self, error: ReframeError) -> None:
        level = _FAILURE_LOG_LEVELS.get(error.kind, logging.ERROR)
        self._last_error = error.message
        model_msg = self._log.append(MessageRole.MODEL, FAILURE_TEMPLATE.format(message=error.message))
        self._log_event(
            level,
            "Stored failure message",
            message_id=model_msg.id,
            kind=error.kind,
            code=error.code,
        )

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:  # noqa: BLE001 - 展示层错误不能影响会话状态
                logger.exception("Snapshot listener failed", extra={"extra": {"session_id": self.session_id}})

    def _log_event(self, level: int, message: str, **fields: Any) -> None:
        payload: Dict[str, Any] = {"session_id": self.session_id, "messages": len(self._log)}
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
