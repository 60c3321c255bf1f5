"""多 Provider 调度引擎。

一次 submit 的流程：
1. 校验 prompt，为每个 Provider 追加 user 消息并把结果置为 loading。
2. 并发调用所有适配器；单个 Provider 的失败不影响其他 Provider。
3. 各 Provider 完成后独立写回结果与对话历史。
4. 全部结束后记录一条 TranscriptEntry，并给出汇总状态。

submit 本身从不抛出异常，部分失败通过 DispatchReport.status 体现。
"""

import asyncio
import copy
import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional
from uuid import uuid4

from studio_core.config.settings import settings
from studio_core.domain.exceptions import BusinessError, ValidationError
from studio_core.domain.models import (
    DispatchReport,
    ProviderView,
    RunOutcome,
    SessionRecord,
    TranscriptEntry,
    Turn,
)
from studio_core.engine.state import StudioState
from studio_core.infrastructure.logging.logger import logger
from studio_core.infrastructure.storage.session_archive import SessionArchive
from studio_core.providers import create_adapters
from studio_core.providers.base import ProviderAdapter
from studio_core.providers.registry import MODEL_PRESETS, ModelChoice, get_preset, get_provider_info

ERROR_SENTINEL = "[Error: response unavailable]"
NO_RESPONSE_MESSAGE = "No response received."
UNEXPECTED_ERROR_MESSAGE = "Unexpected error fetching response."

EMPTY_PROMPT_MESSAGE = "Enter a prompt to get started."
BUSY_MESSAGE = "A request is already in flight."
FETCHING_MESSAGE = "Fetching responses..."
ALL_READY_MESSAGE = "Responses ready."
PARTIAL_FAILURE_MESSAGE = "Some models could not process the request."


class Dispatcher:
    def __init__(
        self,
        adapters: Optional[Mapping[str, ProviderAdapter]] = None,
        api_keys: Optional[Mapping[str, str]] = None,
        state: Optional[StudioState] = None,
        cfg=settings,
        on_status: Optional[Callable[[str], None]] = None,
        on_update: Optional[Callable[[str], None]] = None,
    ):
        self._settings = cfg
        self._adapters: Dict[str, ProviderAdapter] = dict(adapters or create_adapters(cfg))
        self._api_keys: Dict[str, str] = dict(api_keys or {})
        mode = cfg.default_mode if cfg.default_mode in MODEL_PRESETS else "standard"
        self.state = state or StudioState.empty(self._adapters, mode=mode)
        self._on_status = on_status
        self._on_update = on_update

    # ---- 配置 ----

    @property
    def provider_ids(self) -> List[str]:
        return list(self._adapters)

    @property
    def run_count(self) -> int:
        return self._settings.triple_run_count if self.state.triple_run else 1

    def set_api_keys(self, keys: Mapping[str, str]) -> None:
        self._api_keys = {pid: (keys.get(pid) or "") for pid in self._adapters}

    def set_mode(self, mode: str) -> None:
        if mode not in MODEL_PRESETS:
            raise ValidationError(code="UNKNOWN_MODE", message=f"Unknown mode: {mode!r}")
        if mode == self.state.mode:
            return
        self.state.mode = mode
        self._status(f"{MODEL_PRESETS[mode].label} models armed.")

    def set_triple_run(self, enabled: bool) -> None:
        # 请求进行中时开关不可用
        if self.state.is_loading:
            return
        self.state.triple_run = bool(enabled)

    def active_model(self, provider_id: str) -> ModelChoice:
        return get_preset(self.state.mode).models[provider_id]

    # ---- 提交 ----

    async def submit(self, prompt: str) -> DispatchReport:
        if self.state.is_loading:
            return DispatchReport(status="busy", message=BUSY_MESSAGE)

        text = (prompt or "").strip()
        if not text:
            self._status(EMPTY_PROMPT_MESSAGE)
            return DispatchReport(status="invalid", message=EMPTY_PROMPT_MESSAGE)

        log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}", "mode": self.state.mode}
        start_time = time.time()
        self.state.is_loading = True
        try:
            self._status(FETCHING_MESSAGE)
            run_count = self.run_count
            mode = self.state.mode
            models = {pid: self.active_model(pid).model for pid in self._adapters}

            # 网络请求开始前同步写入，观察者能立即看到所有 Provider 进入 loading
            for pid in self._adapters:
                self.state.conversations.append_turn(pid, Turn(role="user", content=text))
                self.state.last_responses[pid] = [RunOutcome.loading() for _ in range(run_count)]
                self._notify(pid)
            self._log(logging.INFO, "Dispatching prompt", log_ctx, run_count=run_count, providers=self.provider_ids)

            keys = dict(self._api_keys)
            await asyncio.gather(
                *(self._run_provider(pid, run_count, models[pid], keys.get(pid), log_ctx) for pid in self._adapters)
            )

            responses: Dict[str, str] = {}
            for pid in self._adapters:
                outcomes = self.state.last_responses[pid]
                responses[pid] = outcomes[0].content if outcomes else ""
            self.state.transcript.append(
                TranscriptEntry(prompt=text, mode=mode, timestamp=int(time.time() * 1000), responses=responses)
            )
            self.state.last_prompt = text

            results = {pid: list(self.state.last_responses[pid]) for pid in self._adapters}
            all_ok = all(not any(o.is_error for o in outcomes) for outcomes in results.values())
            message = ALL_READY_MESSAGE if all_ok else PARTIAL_FAILURE_MESSAGE
            self._log(
                logging.INFO,
                "Completed dispatch",
                log_ctx,
                elapsed_seconds=round(time.time() - start_time, 2),
                all_succeeded=all_ok,
            )
            self._status(message)
            return DispatchReport(status="ok" if all_ok else "partial", message=message, results=results)
        finally:
            self.state.is_loading = False

    async def _run_provider(
        self,
        provider_id: str,
        run_count: int,
        model: str,
        credential: Optional[str],
        log_ctx: Dict[str, Any],
    ) -> None:
        adapter = self._adapters[provider_id]
        history = self.state.conversations.history(provider_id)
        try:
            outputs = await adapter.call(history, run_count, model, credential)
        except Exception as e:
            message = (e.message if isinstance(e, BusinessError) else str(e)) or UNEXPECTED_ERROR_MESSAGE
            self._log(
                logging.WARNING,
                "Provider call failed",
                log_ctx,
                provider=provider_id,
                model=model,
                error_type=type(e).__name__,
                error=message,
            )
            self.state.last_responses[provider_id] = [RunOutcome.error(message)]
            self.state.conversations.append_turn(provider_id, Turn(role="assistant", content=ERROR_SENTINEL))
            self._notify(provider_id)
            return

        if outputs:
            outcomes = [
                RunOutcome(kind="primary" if i == 0 else "secondary", content=content)
                for i, content in enumerate(outputs)
            ]
        else:
            outcomes = [RunOutcome.error(NO_RESPONSE_MESSAGE)]
        self.state.last_responses[provider_id] = outcomes

        # 只有 primary 写回历史；secondary 仅用于对比展示
        reply = outcomes[0].content if not outcomes[0].is_error else ERROR_SENTINEL
        self.state.conversations.append_turn(provider_id, Turn(role="assistant", content=reply))
        self._log(
            logging.INFO,
            "Provider call finished",
            log_ctx,
            provider=provider_id,
            model=model,
            samples=len(outputs),
        )
        self._notify(provider_id)

    # ---- 渲染边界 ----

    def view(self) -> List[ProviderView]:
        preset = get_preset(self.state.mode)
        views: List[ProviderView] = []
        for pid in self._adapters:
            info = get_provider_info(pid)
            views.append(
                ProviderView(
                    provider_id=pid,
                    label=info.label,
                    model_display=preset.models[pid].display,
                    preset_label=preset.label,
                    triple_run=self.state.triple_run,
                    outcomes=list(self.state.last_responses.get(pid) or []),
                    docs_url=info.docs_url,
                    preset_description=preset.description,
                )
            )
        return views

    # ---- 会话归档 ----

    def snapshot(self) -> SessionRecord:
        return SessionRecord(
            id=f"session-{uuid4().hex}",
            saved_at=int(time.time() * 1000),
            transcript=copy.deepcopy(self.state.transcript),
            conversations=self.state.conversations.snapshot(),
            last_responses=copy.deepcopy(self.state.last_responses),
            triple_run=self.state.triple_run,
            mode=self.state.mode,
        )

    def restore(self, record: SessionRecord) -> None:
        """用归档记录整体替换实时状态（不合并）。"""

        self.state.conversations.restore(record.conversations)
        self.state.last_responses = {
            pid: copy.deepcopy(list(record.last_responses.get(pid) or [])) for pid in self._adapters
        }
        self.state.transcript = copy.deepcopy(record.transcript)
        self.state.triple_run = bool(record.triple_run)
        self.state.mode = record.mode if record.mode in MODEL_PRESETS else "standard"
        self.state.last_prompt = self.state.transcript[-1].prompt if self.state.transcript else ""

    def save_session(self, archive: SessionArchive) -> Optional[str]:
        if not self.state.transcript:
            self._status("Nothing to save yet.")
            return None
        record_id = archive.save(self.snapshot())
        self._status("Session saved locally.")
        return record_id

    def load_session(self, archive: SessionArchive, record_id: str) -> bool:
        record = archive.load(record_id)
        if record is None:
            self._status("Unable to load session.")
            return False
        self.restore(record)
        for pid in self._adapters:
            self._notify(pid)
        self._status("Session loaded.")
        return True

    # ---- 辅助方法 ----

    def _status(self, message: str) -> None:
        logger.info(message)
        if not self._on_status:
            return
        try:
            self._on_status(message)
        except Exception:
            logger.exception("Status observer failed")

    def _notify(self, provider_id: str) -> None:
        if not self._on_update:
            return
        try:
            self._on_update(provider_id)
        except Exception:
            # 渲染层异常不能影响其他 Provider 的状态写回
            logger.exception("Update observer failed", extra={"extra": {"provider": provider_id}})

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
