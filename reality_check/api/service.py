"""对外 API 服务模块。

持有进程级的会话（ConversationStore）单例，提供简化的函数接口供展示层调用：
会话在首次访问时创建，通过 end_session() 显式销毁，不做任何持久化。
"""

import asyncio
from typing import Any, Dict, Optional

from reality_check.agents.conversation_store import ConversationStore
from reality_check.agents.reframer import Reframer
from reality_check.config.settings import settings
from reality_check.infrastructure.logging.logger import logger
from reality_check.providers import create_provider


_reframer: Optional[Reframer] = None
_session: Optional[ConversationStore] = None


def get_default_reframer() -> Reframer:
    """获取默认的 Reframer 实例（单例）。"""
    global _reframer
    if _reframer is None:
        _reframer = Reframer(create_provider(), model_name=settings.default_model)
    return _reframer


def get_session() -> ConversationStore:
    """获取当前会话，不存在时创建一个空会话。"""
    global _session
    if _session is None:
        _session = ConversationStore(get_default_reframer(), max_input_chars=settings.max_input_chars)
        logger.info("Session started")
    return _session


def end_session() -> None:
    """结束当前会话，丢弃全部消息。在途请求不会被取消。"""
    global _session, _reframer
    if _session is not None:
        logger.info("Session ended", extra={"extra": {"messages": len(_session.messages)}})
    _session = None
    _reframer = None


async def reframe(text: str) -> str:
    """使用默认 Reframer 对一段文本做一次 reframe。

    Raises:
        ConfigurationError / EmptyResponseError / UpstreamError
    """
    return await get_default_reframer().reframe(text)


def submit(text: str) -> Optional["asyncio.Task[None]"]:
    """提交用户输入到当前会话，必须在运行中的事件循环里调用。"""
    return get_session().submit(text)


def clear() -> None:
    """清空当前会话的消息记录与错误。"""
    get_session().clear()


def get_state() -> Dict[str, Any]:
    """以纯字典形式返回当前会话状态。

    Returns:
        包含 messages（id/role/content/timestamp）、pending、last_error 的字典
    """
    snap = get_session().snapshot()
    return {
        "messages": [m.to_dict() for m in snap.messages],
        "pending": snap.pending,
        "last_error": snap.last_error,
    }
