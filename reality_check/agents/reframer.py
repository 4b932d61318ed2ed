"""Reframe 调用封装。

把用户原文包装为固定的 system instruction + prompt，调用一次 Provider，
返回纯文本或带 kind 标签的 ReframeError。不做重试、缓存或流式输出。
"""

import time
from typing import Optional

from reality_check.config.settings import settings
from reality_check.domain.exceptions import EmptyResponseError, ReframeError, UpstreamError
from reality_check.domain.models import GenerationRequest
from reality_check.infrastructure.logging.logger import logger
from reality_check.prompts import load_system_instruction, render_reframe_prompt
from reality_check.providers.base import ProviderClient


EMPTY_RESPONSE_MESSAGE = "Gemini API returned an empty response."
UPSTREAM_MESSAGE = "Failed to reframe anxiety. Please try again. Details: {details}"


class Reframer:
    def __init__(
        self,
        provider_client: ProviderClient,
        model_name: Optional[str] = None,
        cfg=settings,
    ):
        """初始化 Reframer。

        Args:
            provider_client: Provider 客户端实例
            model_name: 逻辑模型名（可选，默认取配置）
            cfg: 生成参数来源
        """
        self._client = provider_client
        self._settings = cfg
        self._model = model_name or getattr(cfg, "default_model", "reframe")

    def build_request(self, user_input: str) -> GenerationRequest:
        return GenerationRequest(
            provider=getattr(self._client, "name", "gemini"),
            model=self._model,
            system_instruction=load_system_instruction(),
            prompt=render_reframe_prompt(user_input),
            temperature=self._settings.temperature,
            top_p=self._settings.top_p,
            top_k=self._settings.top_k,
            max_output_tokens=self._settings.max_output_tokens,
        )

    async def reframe(self, user_input: str) -> str:
        """对一段 AI 相关新闻或焦虑描述给出重构视角。

        调用方负责保证 user_input 去除空白后非空。

        Raises:
            ConfigurationError: 未配置 API 凭证（不会发起网络请求）。
            EmptyResponseError: 上游返回成功但没有可用文本。
            UpstreamError: 其他网络/API 错误，message 带有上游信息。
        """
        req = self.build_request(user_input)
        start_time = time.time()
        log_ctx = {"provider": req.provider, "model": req.model, "input_chars": len(user_input)}
        try:
            result = await self._client.generate(req)
        except UpstreamError as e:
            logger.error("Reframe call failed", extra={"extra": {**log_ctx, "code": e.code, "error": e.message}})
            raise UpstreamError(
                code=e.code,
                message=UPSTREAM_MESSAGE.format(details=e.message),
                http_status=e.http_status,
                **e.extra,
            ) from e
        except ReframeError:
            raise
        except Exception as e:  # noqa: BLE001 - 任何传输层异常都归为 UpstreamError
            logger.error("Reframe call failed", extra={"extra": {**log_ctx, "error": str(e)}})
            raise UpstreamError(
                code="UNKNOWN_ERROR",
                message=UPSTREAM_MESSAGE.format(details=str(e) or type(e).__name__),
            ) from e

        text = result.text
        if not text or not text.strip():
            logger.warning(
                "Reframe call returned no text",
                extra={"extra": {**log_ctx, "finish_reason": result.finish_reason}},
            )
            raise EmptyResponseError(code="EMPTY_RESPONSE", message=EMPTY_RESPONSE_MESSAGE)

        logger.info(
            "Reframe call succeeded",
            extra={"extra": {
                **log_ctx,
                "elapsed_seconds": round(time.time() - start_time, 2),
                "output_chars": len(text),
            }},
        )
        return text
