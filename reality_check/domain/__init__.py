"""领域层模型与协议。

包含：
- models: Message / ConversationSnapshot / GenerationRequest / GenerationResult 模型。
- conversation: 消息记录与 Reframer 的协议定义。
- exceptions: 业务异常类型定义。
"""
