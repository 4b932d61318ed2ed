"""Google Gemini Provider 适配器。

使用 Generative Language REST 接口：
- URL: {base_url}/models/{model}:generateContent
- 认证: x-goog-api-key: <api_key>

本实现只依赖公共字段：systemInstruction/contents/generationConfig，
响应只读取 candidates[0].content.parts 中的文本与 usageMetadata。
"""

import json
import os
from typing import Any, Dict, Optional

import httpx

from reality_check.config.settings import settings
from reality_check.domain.exceptions import ConfigurationError, UpstreamError
from reality_check.domain.models import GenerationRequest, GenerationResult, GenerationUsage
from reality_check.infrastructure.logging.logger import logger
from reality_check.providers.registry import ModelConfig, get_provider_config, resolve_model


MISSING_KEY_MESSAGE = "API_KEY is not defined. Please ensure it's set in your environment."


class GeminiClient:
    """Gemini Provider 客户端实现。"""

    name = "gemini"

    def __init__(self, cfg=settings):
        self._settings = cfg

    async def generate(self, req: GenerationRequest) -> GenerationResult:
        api_key = self._api_key()
        if not api_key:
            raise ConfigurationError(code="MISSING_API_KEY", message=MISSING_KEY_MESSAGE)
        provider_cfg = get_provider_config(self.name)
        model_cfg = resolve_model(provider_cfg, req.model)
        payload = self._build_payload(req, model_cfg)
        base = getattr(self._settings, "gemini_base_url", None) or provider_cfg.base_url
        url = f"{base}/models/{model_cfg.provider_model}:generateContent"
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(
                    url,
                    json=payload,
                    headers={
                        "x-goog-api-key": api_key,
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            raise UpstreamError(code="NETWORK_ERROR", message=str(e) or type(e).__name__) from e
        if resp.status_code == 429:
            raise UpstreamError(
                code="RATE_LIMIT",
                message=self._error_message(resp),
                http_status=429,
            )
        if resp.status_code >= 400:
            raise UpstreamError(
                code="API_ERROR",
                message=self._error_message(resp),
                http_status=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError(code="BAD_RESPONSE", message=f"Invalid JSON from Gemini: {e}") from e
        result = self._parse_response(data, req)
        logger.info(
            "Gemini call finished",
            extra={"extra": {
                "model": model_cfg.provider_model,
                "finish_reason": result.finish_reason,
                "total_tokens": result.usage.total_tokens if result.usage else None,
            }},
        )
        return result

    # ---- 辅助方法 ----

    def _api_key(self) -> Optional[str]:
        # 运行期修正的环境变量也能在下一次调用生效
        key = getattr(self._settings, "api_key", None) or os.environ.get("API_KEY", "")
        return key.strip() or None

    def _build_payload(self, req: GenerationRequest, model_cfg: ModelConfig) -> Dict[str, Any]:
        return {
            "systemInstruction": {"parts": [{"text": req.system_instruction}]},
            "contents": [{"role": "user", "parts": [{"text": req.prompt}]}],
            "generationConfig": {
                "temperature": req.temperature if req.temperature is not None else model_cfg.default_temperature,
                "topP": req.top_p,
                "topK": req.top_k,
                "maxOutputTokens": req.max_output_tokens or model_cfg.max_output_tokens,
            },
        }

    def _parse_response(self, data: Dict[str, Any], req: GenerationRequest) -> GenerationResult:
        candidates = data.get("candidates") or []
        text = ""
        finish_reason = None
        if candidates:
            first = candidates[0] or {}
            finish_reason = first.get("finishReason")
            parts = (first.get("content") or {}).get("parts") or []
            # 思考类 part 不属于回答正文
            text = "".join(p.get("text") or "" for p in parts if not p.get("thought"))
        else:
            feedback = data.get("promptFeedback") or {}
            finish_reason = feedback.get("blockReason")
        usage = None
        usage_raw = data.get("usageMetadata") or {}
        if usage_raw:
            usage = GenerationUsage(
                prompt_tokens=usage_raw.get("promptTokenCount", 0),
                completion_tokens=usage_raw.get("candidatesTokenCount", 0),
                total_tokens=usage_raw.get("totalTokenCount", 0),
            )
        return GenerationResult(
            provider=self.name,
            model=req.model,
            text=text,
            finish_reason=finish_reason,
            usage=usage,
            raw=data,
        )

    @staticmethod
    def _error_message(resp: Any) -> str:
        body = resp.text or ""
        try:
            data = json.loads(body)
        except json.JSONDecodeError:
            return body or f"HTTP {resp.status_code}"
        err = data.get("error") if isinstance(data, dict) else None
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        return body
