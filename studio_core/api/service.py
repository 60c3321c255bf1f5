"""对外 API 服务模块。

提供简化的函数接口供宿主界面调用；返回值均为可直接渲染的 dict。
"""

import asyncio
from typing import Any, Dict, List, Mapping, Optional

from studio_core.config.settings import settings
from studio_core.domain.models import DispatchReport
from studio_core.engine.dispatcher import Dispatcher
from studio_core.infrastructure.logging.logger import logger
from studio_core.infrastructure.storage.credential_store import CredentialStore
from studio_core.infrastructure.storage.kv_store import JsonFileStore, KeyValueStore
from studio_core.infrastructure.storage.session_archive import SessionArchive


class Studio:
    """把调度器、凭证存储与会话归档组合在一起的宿主入口。"""

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        dispatcher: Optional[Dispatcher] = None,
        cfg=settings,
    ):
        self.store = store or JsonFileStore(root=cfg.storage_root)
        self.dispatcher = dispatcher or Dispatcher(cfg=cfg)
        self.credentials = CredentialStore(self.store, self.dispatcher.provider_ids, cfg=cfg)
        self.archive = SessionArchive(self.store)
        self.dispatcher.set_api_keys(self.credentials.load())

    def save_api_keys(self, keys: Mapping[str, Optional[str]]) -> None:
        self.credentials.save(keys)
        self.dispatcher.set_api_keys(self.credentials.load())

    def clear_api_keys(self) -> None:
        self.credentials.clear()
        self.dispatcher.set_api_keys(self.credentials.load())


_studio: Optional[Studio] = None


def get_default_studio() -> Studio:
    """获取默认的 Studio 实例（单例）。"""
    global _studio
    if _studio is None:
        _studio = Studio()
    return _studio


async def submit_prompt(prompt: str) -> Dict[str, Any]:
    """向所有 Provider 提交 prompt，返回汇总状态与各 Provider 结果。"""
    report = await get_default_studio().dispatcher.submit(prompt)
    return _report_to_dict(report)


def run_prompt(prompt: str) -> Dict[str, Any]:
    """submit_prompt 的同步版本，供脚本或非异步宿主使用。"""
    return asyncio.run(submit_prompt(prompt))


def set_mode(mode: str) -> None:
    get_default_studio().dispatcher.set_mode(mode)


def set_triple_run(enabled: bool) -> None:
    get_default_studio().dispatcher.set_triple_run(enabled)


def render_columns() -> List[Dict[str, Any]]:
    """返回每个 Provider 列的渲染数据。"""
    return [
        {
            "provider": v.provider_id,
            "label": v.label,
            "model": v.model_display,
            "meta": v.meta_line,
            "description": v.preset_description,
            "docs": v.docs_url,
            "responses": [{"type": o.kind, "content": o.content} for o in v.outcomes],
        }
        for v in get_default_studio().dispatcher.view()
    ]


def save_session() -> Optional[str]:
    studio = get_default_studio()
    return studio.dispatcher.save_session(studio.archive)


def list_sessions() -> List[Dict[str, Any]]:
    """列出已保存的会话（最新的在前）。"""
    return [
        {
            "id": s.id,
            "saved_at": s.saved_at,
            "headline": s.headline,
            "turns": s.turns,
            "mode": s.mode_label,
        }
        for s in get_default_studio().archive.list()
    ]


def load_session(session_id: str) -> bool:
    studio = get_default_studio()
    return studio.dispatcher.load_session(studio.archive, session_id)


def delete_session(session_id: str) -> None:
    get_default_studio().archive.delete(session_id)


def get_api_keys() -> Dict[str, str]:
    """返回用户保存过的密钥，用于回填设置表单。"""
    return get_default_studio().credentials.stored()


def save_api_keys(keys: Mapping[str, Optional[str]]) -> None:
    get_default_studio().save_api_keys(keys)


def clear_api_keys() -> None:
    get_default_studio().clear_api_keys()


def _report_to_dict(report: DispatchReport) -> Dict[str, Any]:
    if report.status == "partial":
        failed = [pid for pid, outs in report.results.items() if any(o.is_error for o in outs)]
        logger.warning("Partial failure", extra={"extra": {"failed_providers": failed}})
    return {
        "status": report.status,
        "message": report.message,
        "all_succeeded": report.all_succeeded,
        "responses": {
            pid: [{"type": o.kind, "content": o.content} for o in outcomes]
            for pid, outcomes in report.results.items()
        },
    }
