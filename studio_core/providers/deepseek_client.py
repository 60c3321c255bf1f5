"""DeepSeek Provider 适配器。

接口与 OpenAI 兼容，仅在请求体中额外固定 temperature。
"""

from typing import Any, Dict, Sequence

from studio_core.domain.models import Turn
from studio_core.providers.openai_client import OpenAIClient

DEEPSEEK_TEMPERATURE = 0.7


class DeepSeekClient(OpenAIClient):
    name = "deepseek"
    label = "DeepSeek"

    @property
    def base_url(self) -> str:
        return self._settings.deepseek_base_url

    def _build_payload(self, history: Sequence[Turn], model: str) -> Dict[str, Any]:
        payload = super()._build_payload(history, model)
        payload["temperature"] = DEEPSEEK_TEMPERATURE
        return payload
