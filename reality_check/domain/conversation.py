from typing import Callable, List, Protocol

from .models import ConversationSnapshot, Message, MessageRole


SnapshotListener = Callable[[ConversationSnapshot], None]


class MessageLog(Protocol):
    """只允许尾部追加与整体清空的有序消息记录。"""

    def append(self, role: MessageRole, content: str) -> Message:
        ...

    def list_messages(self) -> List[Message]:
        ...

    def clear(self) -> None:
        ...

    def __len__(self) -> int:
        ...


class Reframer(Protocol):
    async def reframe(self, user_input: str) -> str:
        ...
