"""Provider 抽象接口。

调度器不直接依赖具体厂商的 HTTP 协议，而是依赖此协议：

- 每个厂商实现一个 ProviderAdapter（如 OpenAIClient）。
- 负责：把通用的 Turn 历史转成具体 API 请求，按 run_count 顺序发起请求，
  并把响应解析为纯文本；失败时抛出 domain.exceptions 中的异常。

适配器不修改对话历史，写回由调度器负责。
"""

from typing import Any, List, Optional, Protocol, Sequence

import httpx

from studio_core.domain.exceptions import ApiError, MissingCredentialError, RateLimitError
from studio_core.domain.models import Turn

MISSING_KEY_MESSAGE = "API key missing. Add it in the API Keys panel."


class ProviderAdapter(Protocol):
    """LLM Provider 适配器协议。

    实现者需要提供：
    - name: Provider 名称，用于日志。
    - call(...): 顺序执行 run_count 次非流式调用，返回每次采样的文本。
    """

    name: str

    async def call(
        self,
        history: Sequence[Turn],
        run_count: int,
        model: str,
        credential: Optional[str],
    ) -> List[str]:
        ...


def require_credential(provider: str, credential: Optional[str]) -> str:
    if not credential or not credential.strip():
        raise MissingCredentialError(code="MISSING_API_KEY", message=MISSING_KEY_MESSAGE, provider=provider)
    return credential.strip()


def safe_json(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


def raise_for_error(provider: str, resp: httpx.Response, fallback: str) -> None:
    """非 2xx 响应时抛出异常，错误信息优先取厂商返回的 error.message。"""

    if 200 <= resp.status_code < 300:
        return
    payload = safe_json(resp)
    vendor_message = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        candidate = payload["error"].get("message")
        if isinstance(candidate, str):
            vendor_message = candidate.strip()
    reason = getattr(resp, "reason_phrase", "")
    message = vendor_message or (reason if isinstance(reason, str) else "") or fallback
    exc_cls = RateLimitError if resp.status_code == 429 else ApiError
    raise exc_cls(code="API_ERROR", message=message, http_status=resp.status_code, provider=provider)
