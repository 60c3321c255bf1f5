"""API 密钥的持久化。

整个 provider_id -> key 映射作为一条 JSON 记录保存；写入总是整体替换。
存储中某个 Provider 的密钥为空时，回退到环境变量 / config.yaml 中的配置。
"""

import json
from typing import Dict, Iterable, Mapping, Optional

from studio_core.config.settings import settings
from studio_core.infrastructure.logging.logger import logger
from studio_core.infrastructure.storage.kv_store import KeyValueStore

API_KEYS_KEY = "multiModelStudio.apiKeys"


class CredentialStore:
    def __init__(self, store: KeyValueStore, provider_ids: Iterable[str], cfg=settings):
        self._store = store
        self._provider_ids = list(provider_ids)
        self._settings = cfg

    def load(self) -> Dict[str, str]:
        stored = self._read()
        keys: Dict[str, str] = {}
        for pid in self._provider_ids:
            value = stored.get(pid) or getattr(self._settings, f"{pid}_api_key", None) or ""
            keys[pid] = str(value).strip()
        return keys

    def stored(self) -> Dict[str, str]:
        """仅返回用户保存过的密钥（不含环境变量兜底），用于回填设置表单。"""
        stored = self._read()
        return {pid: str(stored.get(pid) or "") for pid in self._provider_ids}

    def save(self, keys: Mapping[str, Optional[str]]) -> None:
        payload = {pid: (keys.get(pid) or "").strip() for pid in self._provider_ids}
        self._store.set(API_KEYS_KEY, json.dumps(payload))
        logger.info(
            "API keys saved",
            extra={"extra": {"configured": [pid for pid, v in payload.items() if v]}},
        )

    def clear(self) -> None:
        self._store.delete(API_KEYS_KEY)
        logger.info("API keys cleared")

    def _read(self) -> Dict[str, str]:
        raw = self._store.get(API_KEYS_KEY)
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Stored API keys are corrupt, ignoring")
            return {}
        return parsed if isinstance(parsed, dict) else {}
