"""OpenAI Provider 适配器。

使用 chat/completions 端点：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>

请求体只包含 model/messages；role 原样透传。DeepSeek 接口兼容该格式，
DeepSeekClient 直接继承本类。
"""

from typing import Any, Dict, List, Optional, Sequence

import httpx

from studio_core.config.settings import settings
from studio_core.domain.exceptions import NetworkError
from studio_core.domain.models import Turn
from studio_core.providers.base import raise_for_error, require_credential, safe_json


class OpenAIClient:
    """OpenAI Provider 客户端实现。"""

    name = "openai"
    label = "OpenAI"

    def __init__(self, cfg=settings):
        self._settings = cfg

    @property
    def base_url(self) -> str:
        return self._settings.openai_base_url

    async def call(
        self,
        history: Sequence[Turn],
        run_count: int,
        model: str,
        credential: Optional[str],
    ) -> List[str]:
        key = require_credential(self.name, credential)
        payload = self._build_payload(history, model)
        responses: List[str] = []
        async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
            # 逐次采样，上一条返回后才发起下一条
            for _ in range(run_count):
                try:
                    resp = await client.post(
                        f"{self.base_url}/chat/completions",
                        json=payload,
                        headers={
                            "Authorization": f"Bearer {key}",
                            "Content-Type": "application/json",
                        },
                    )
                except httpx.RequestError as e:
                    raise NetworkError(code="NETWORK_ERROR", message=str(e) or f"{self.label} request failed.")
                raise_for_error(self.name, resp, f"{self.label} request failed.")
                responses.append(self._parse_response(safe_json(resp)))
        return responses

    # ---- 辅助方法 ----

    def _build_payload(self, history: Sequence[Turn], model: str) -> Dict[str, Any]:
        return {
            "model": model,
            "messages": [{"role": t.role, "content": t.content} for t in history],
        }

    @staticmethod
    def _parse_response(data: Any) -> str:
        if not isinstance(data, dict):
            return ""
        choices = data.get("choices") or []
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return ""
        message = choices[0].get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        return (content or "").strip() if isinstance(content, str) else ""
