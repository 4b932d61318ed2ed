"""Provider 抽象接口。

上层 Reframer 不直接依赖具体厂商的 HTTP 接口，而是依赖此协议：

- 每个厂商实现一个 ProviderClient（如 GeminiClient）。
- 负责：将 GenerationRequest 转成具体 API 请求，并把响应 JSON 解析为 GenerationResult。

这样可以在不改会话层代码的前提下接入更多厂商。
"""

from typing import Protocol
from reality_check.domain.models import GenerationRequest, GenerationResult


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志/统计。
    - generate(req): 执行一次非流式生成调用，返回统一的 GenerationResult。
    """

    name: str

    async def generate(self, req: GenerationRequest) -> GenerationResult:
        ...
