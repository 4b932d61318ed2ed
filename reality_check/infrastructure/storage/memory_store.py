from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from reality_check.domain.conversation import MessageLog
from reality_check.domain.models import Message, MessageRole


class InMemoryMessageLog(MessageLog):
    """进程内的消息记录，会话结束即丢弃。

    id 与时间戳在追加时生成；若系统时钟回拨，时间戳取上一条的值，
    保证整个记录的时间戳单调不减。
    """

    def __init__(self) -> None:
        self._messages: List[Message] = []
        self._last_ts: Optional[datetime] = None

    def append(self, role: MessageRole, content: str) -> Message:
        now = datetime.now(timezone.utc)
        if self._last_ts is not None and now < self._last_ts:
            now = self._last_ts
        msg = Message(id=f"m-{uuid4().hex}", role=role, content=content, timestamp=now)
        self._messages.append(msg)
        self._last_ts = now
        return msg

    def list_messages(self) -> List[Message]:
        return list(self._messages)

    def clear(self) -> None:
        # 保留 _last_ts，清空后新消息的时间戳仍不早于之前的记录
        self._messages = []

    def __len__(self) -> int:
        return len(self._messages)
