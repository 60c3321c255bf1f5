"""Google Gemini Provider 适配器。

与 OpenAI 风格不同：
- URL: {base_url}/models/{model}:generateContent?key=<api_key>，密钥走查询参数而不是请求头。
- 消息: assistant 映射为 model，其余角色一律为 user，每条为 {role, parts: [{text}]}。
- 请求体附带固定的 safetySettings。
"""

from typing import Any, Dict, List, Optional, Sequence

import httpx

from studio_core.config.settings import settings
from studio_core.domain.exceptions import NetworkError
from studio_core.domain.models import Turn
from studio_core.providers.base import raise_for_error, require_credential, safe_json

EMPTY_CONTENT = "No content returned."

SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
]


class GeminiClient:
    name = "google"
    label = "Google"

    def __init__(self, cfg=settings):
        self._settings = cfg

    async def call(
        self,
        history: Sequence[Turn],
        run_count: int,
        model: str,
        credential: Optional[str],
    ) -> List[str]:
        key = require_credential(self.name, credential)
        payload = self._build_payload(history)
        url = f"{self._settings.gemini_base_url}/models/{model}:generateContent"
        responses: List[str] = []
        async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
            for _ in range(run_count):
                try:
                    resp = await client.post(
                        url,
                        params={"key": key},
                        json=payload,
                        headers={"Content-Type": "application/json"},
                    )
                except httpx.RequestError as e:
                    raise NetworkError(code="NETWORK_ERROR", message=str(e) or f"{self.label} request failed.")
                raise_for_error(self.name, resp, f"{self.label} request failed.")
                responses.append(self._parse_response(safe_json(resp)))
        return responses

    def _build_payload(self, history: Sequence[Turn]) -> Dict[str, Any]:
        contents = [
            {
                "role": "model" if t.role == "assistant" else "user",
                "parts": [{"text": t.content}],
            }
            for t in history
        ]
        return {"contents": contents, "safetySettings": SAFETY_SETTINGS}

    @staticmethod
    def _parse_response(data: Any) -> str:
        """拼接第一个候选的所有文本片段；取不到内容时返回占位文本。"""

        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
            return EMPTY_CONTENT
        content = candidates[0].get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            return EMPTY_CONTENT
        texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
        text = "\n".join(texts).strip()
        return text or EMPTY_CONTENT
