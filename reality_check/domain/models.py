"""统一的消息与生成请求数据模型。

本模块定义了会话层与 Provider 层共享的标准数据结构：

- MessageRole / Message: 会话记录中的一条消息（user 或 model）。
- ConversationSnapshot: 会话状态的只读快照，供展示层渲染。
- GenerationRequest: 发给底层 LLM Provider 的单次生成请求。
- GenerationResult: 从 Provider 解析后的统一响应结果。

Provider 适配器（如 GeminiClient）只依赖这些模型，
并负责在各自的 API JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class MessageRole(str, Enum):
    """消息发送方，只有用户与模型两种。"""

    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class Message:
    """会话记录中的一条消息，追加后不可修改。

    - id: 客户端生成的唯一标识，如 "m-<hex>"。
    - role: 发送方。
    - content: 文本内容（用户消息已去除首尾空白）。
    - timestamp: 创建时间（UTC，带时区），在记录中单调不减。
    """

    id: str
    role: MessageRole
    content: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class ConversationSnapshot:
    """会话状态快照。

    展示层只读取该结构：消息列表、是否有请求在途、最近一次错误。
    """

    messages: Tuple[Message, ...] = ()
    pending: bool = False
    last_error: Optional[str] = None


@dataclass
class GenerationRequest:
    """一次完整的生成请求。

    Reframer 生成 GenerationRequest，再交给具体 ProviderClient。
    Provider 适配层负责把本结构转换成各家 API 的 JSON 请求体。
    """

    provider: str  # 逻辑 Provider 名，如 "gemini"
    model: str  # 逻辑模型名，如 "reframe"（再由 registry 映射为真实模型名）
    system_instruction: str
    prompt: str
    temperature: float = 0.8
    top_p: float = 0.95
    top_k: int = 64
    max_output_tokens: Optional[int] = None


@dataclass
class GenerationUsage:
    """Provider 返回的 token 统计信息（统一格式）。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class GenerationResult:
    """一次生成调用的最终结果。

    - text: 首个候选的纯文本，可能为空字符串（由调用方判定是否可用）。
    - finish_reason: 厂商返回的结束原因，如 "STOP"、"MAX_TOKENS"。
    - raw: 原始响应 JSON，用于调试或日志记录。
    """

    provider: str
    model: str
    text: str
    finish_reason: Optional[str] = None
    usage: Optional[GenerationUsage] = None
    raw: Dict[str, Any] = field(default_factory=dict)
