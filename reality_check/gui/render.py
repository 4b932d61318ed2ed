"""会话状态到界面文本的纯函数映射。

不持有任何状态，输入同一快照得到同一输出，tkinter 窗口只负责把结果画出来。
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from reality_check.domain.models import ConversationSnapshot, Message, MessageRole


APP_TITLE = "AI Reality Check"
WELCOME_TITLE = "Welcome to AI Reality Check!"
WELCOME_BODY = (
    "Feeling anxious about AI news and your career? Share what's on your mind or "
    "paste an article snippet, and I'll help you reframe it with a realistic and "
    "supportive perspective."
)
WELCOME_HINT = "Type your thoughts below to get started."
THINKING_TEXT = "AI is thinking..."
INPUT_PLACEHOLDER = (
    "Type your AI-related anxiety or news snippet here... "
    "(Shift+Enter for new line, Enter to send)"
)


@dataclass(frozen=True)
class Block:
    """一段待绘制的文本及其样式标签。"""

    text: str
    tag: str


@dataclass(frozen=True)
class ControlsState:
    input_enabled: bool
    submit_enabled: bool
    submit_label: str


def format_time(ts: datetime) -> str:
    """按本地时区显示时间。"""
    return ts.astimezone().strftime("%H:%M:%S")


def message_blocks(message: Message) -> List[Block]:
    tag = "user" if message.role == MessageRole.USER else "model"
    label = "You" if message.role == MessageRole.USER else "AI Reality Check"
    return [
        Block(f"{label}\n", f"{tag}_label"),
        Block(f"{message.content}\n", tag),
        Block(f"{format_time(message.timestamp)}\n\n", "time"),
    ]


def transcript_blocks(snapshot: ConversationSnapshot) -> List[Block]:
    blocks: List[Block] = []
    if not snapshot.messages:
        blocks.append(Block(f"{WELCOME_TITLE}\n\n", "welcome_title"))
        blocks.append(Block(f"{WELCOME_BODY}\n\n", "welcome"))
        blocks.append(Block(f"{WELCOME_HINT}\n\n", "hint"))
    for message in snapshot.messages:
        blocks.extend(message_blocks(message))
    if snapshot.pending:
        blocks.append(Block(f"{THINKING_TEXT}\n", "thinking"))
    return blocks


def error_banner(snapshot: ConversationSnapshot) -> Optional[str]:
    if not snapshot.last_error:
        return None
    return f"Error: {snapshot.last_error}"


def controls_state(snapshot: ConversationSnapshot, current_input: str) -> ControlsState:
    return ControlsState(
        input_enabled=not snapshot.pending,
        submit_enabled=not snapshot.pending and bool(current_input.strip()),
        submit_label="..." if snapshot.pending else "Reframe",
    )
