"""会话归档。

所有记录作为一个 JSON 列表保存在同一个 key 下，save/delete 都是整表读-改-写，
只支持单写者。读到损坏或格式不对的数据时按空归档处理，不向上抛错。
"""

import json
import time
from typing import Any, Dict, List, Optional
from uuid import uuid4

from studio_core.domain.models import SessionRecord, SessionSummary
from studio_core.infrastructure.logging.logger import logger
from studio_core.infrastructure.storage.kv_store import KeyValueStore
from studio_core.providers.registry import get_preset

HISTORY_KEY = "multiModelStudio.history"

HEADLINE_LENGTH = 60


class SessionArchive:
    def __init__(self, store: KeyValueStore):
        self._store = store

    def save(self, record: SessionRecord) -> str:
        """追加一条记录并返回其 id。record.id 为空时自动生成。"""

        payload = record.to_dict()
        if not payload.get("id"):
            payload["id"] = f"session-{uuid4().hex}"
        if not payload.get("savedAt"):
            payload["savedAt"] = int(time.time() * 1000)
        history = self._read()
        history.append(payload)
        self._write(history)
        logger.info(
            "Session saved",
            extra={"extra": {"session_id": payload["id"], "turns": len(record.transcript)}},
        )
        return payload["id"]

    def list(self) -> List[SessionSummary]:
        items: List[SessionSummary] = []
        for raw in reversed(self._read()):
            try:
                items.append(self._summarize(raw))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(
                    "Stored session is malformed, skipped",
                    extra={"extra": {"session_id": str(raw.get("id")), "error": str(e)}},
                )
        return items

    @staticmethod
    def _summarize(raw: Dict[str, Any]) -> SessionSummary:
        record_id = raw["id"]
        if not isinstance(record_id, str):
            raise TypeError(f"session id must be a string, got {type(record_id).__name__}")
        transcript = raw.get("transcript")
        if not isinstance(transcript, list):
            transcript = []
        first_prompt = ""
        if transcript and isinstance(transcript[0], dict) and isinstance(transcript[0].get("prompt"), str):
            first_prompt = transcript[0]["prompt"]
        mode = raw.get("mode")
        return SessionSummary(
            id=record_id,
            saved_at=_as_millis(raw.get("savedAt")),
            headline=first_prompt[:HEADLINE_LENGTH] or "Session",
            turns=len(transcript),
            mode_label=get_preset(mode if isinstance(mode, str) else None).label,
        )

    def load(self, record_id: str) -> Optional[SessionRecord]:
        for raw in self._read():
            if raw.get("id") == record_id:
                try:
                    return SessionRecord.from_dict(raw)
                except (KeyError, TypeError, ValueError, AttributeError) as e:
                    logger.warning(
                        "Stored session is malformed",
                        extra={"extra": {"session_id": record_id, "error": str(e)}},
                    )
                    return None
        return None

    def delete(self, record_id: str) -> None:
        history = self._read()
        filtered = [raw for raw in history if raw.get("id") != record_id]
        if len(filtered) != len(history):
            self._write(filtered)
            logger.info("Session removed", extra={"extra": {"session_id": record_id}})

    def _read(self) -> List[Dict[str, Any]]:
        raw = self._store.get(HISTORY_KEY)
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Session archive is corrupt, treating as empty")
            return []
        if not isinstance(parsed, list):
            return []
        return [item for item in parsed if isinstance(item, dict)]

    def _write(self, history: List[Dict[str, Any]]) -> None:
        self._store.set(HISTORY_KEY, json.dumps(history, ensure_ascii=False))


def _as_millis(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(value or 0)
    except (TypeError, ValueError, OverflowError):
        return 0
