"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 列表与模型预设 (registry)。
- 提供各厂商的具体实现 (openai_client、deepseek_client、gemini_client)。
"""

from typing import Dict

from studio_core.config.settings import settings
from studio_core.providers.base import ProviderAdapter
from studio_core.providers.deepseek_client import DeepSeekClient
from studio_core.providers.gemini_client import GeminiClient
from studio_core.providers.openai_client import OpenAIClient
from studio_core.providers.registry import PROVIDER_IDS

_ADAPTERS = {
    "openai": OpenAIClient,
    "deepseek": DeepSeekClient,
    "google": GeminiClient,
}


def create_adapter(name: str, cfg=None) -> ProviderAdapter:
    """根据 Provider id 创建适配器实例。"""

    try:
        adapter_cls = _ADAPTERS[name.lower()]
    except KeyError:
        raise KeyError(f"Unknown provider: {name!r}") from None
    return adapter_cls(cfg or settings)


def create_adapters(cfg=None) -> Dict[str, ProviderAdapter]:
    """按 registry 中声明的顺序为每个 Provider 创建适配器。"""

    return {pid: create_adapter(pid, cfg) for pid in PROVIDER_IDS}
