"""AI Reality Check 顶层包。

该包提供一个单会话的对话工具：把用户关于 AI 与职业的焦虑或新闻片段
交给 Gemini 做 reframe，并以对话记录的形式展示回答。
包括配置加载、领域模型、Provider 适配、会话状态管理与 tkinter 界面。
"""

from reality_check.agents.conversation_store import ConversationStore
from reality_check.agents.reframer import Reframer

__all__ = ["ConversationStore", "Reframer"]
