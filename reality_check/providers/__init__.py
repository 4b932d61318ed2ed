"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供各厂商的具体实现 (如 gemini_client)。
"""

from typing import Optional

from reality_check.config.settings import settings
from reality_check.domain.exceptions import ConfigurationError
from reality_check.providers.base import ProviderClient
from reality_check.providers.gemini_client import GeminiClient
from reality_check.providers.registry import get_provider_config


def create_provider(name: Optional[str] = None) -> ProviderClient:
    """根据名称创建 Provider 实例，默认取配置中的 provider。

    名称先经 registry 校验，未登记的 Provider 视为配置错误。
    """

    provider_name = name or getattr(settings, "default_provider", "gemini")
    try:
        provider_cfg = get_provider_config(provider_name)
    except KeyError:
        raise ConfigurationError(
            code="UNKNOWN_PROVIDER",
            message=f"Unknown provider: {provider_name!r}",
        ) from None
    if provider_cfg.name == "gemini":
        return GeminiClient(settings)
    raise ConfigurationError(
        code="UNKNOWN_PROVIDER",
        message=f"No client implementation for provider {provider_cfg.name!r}",
    )
