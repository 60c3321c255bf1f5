"""统一的对话与结果数据模型。

本模块定义了调度器与各 Provider 适配器之间共享的标准数据结构：

- Turn: 一条对话消息（user/assistant/system）。
- RunOutcome: 单次采样在界面上呈现的结果（loading/primary/secondary/error）。
- TranscriptEntry: 一次提交在对比日志中的一行。
- SessionRecord: 写入会话归档的完整状态快照。

SessionRecord 的序列化字段沿用 camelCase 命名（savedAt、lastResponses、tripleRun），
与既有的本地存储格式保持兼容。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional


Role = Literal["system", "user", "assistant"]

OutcomeKind = Literal["loading", "primary", "secondary", "error"]

LOADING_TEXT = "Awaiting response..."


@dataclass
class Turn:
    """一条对话消息。"""

    role: Role
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Turn":
        return cls(role=data.get("role") or "user", content=data.get("content") or "")


@dataclass
class RunOutcome:
    """单次采样的结果。

    - primary: 第一条成功的采样，会写回对话历史。
    - secondary: 多次采样模式下的其余采样，仅用于对比展示。
    - error: 失败信息。
    - loading: 请求进行中的占位。
    """

    kind: OutcomeKind
    content: str

    @classmethod
    def loading(cls) -> "RunOutcome":
        return cls(kind="loading", content=LOADING_TEXT)

    @classmethod
    def error(cls, message: str) -> "RunOutcome":
        return cls(kind="error", content=message)

    @property
    def is_error(self) -> bool:
        return self.kind == "error"

    def to_dict(self) -> Dict[str, Any]:
        # 旧存储格式中字段名为 type
        return {"type": self.kind, "content": self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunOutcome":
        return cls(kind=data.get("type") or data.get("kind") or "primary", content=data.get("content") or "")


@dataclass
class TranscriptEntry:
    """跨 Provider 对比日志中的一条记录。timestamp 为毫秒级 epoch。"""

    prompt: str
    mode: str
    timestamp: int
    responses: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prompt": self.prompt,
            "mode": self.mode,
            "timestamp": self.timestamp,
            "responses": dict(self.responses),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptEntry":
        return cls(
            prompt=data.get("prompt") or "",
            mode=data.get("mode") or "",
            timestamp=int(data.get("timestamp") or 0),
            responses=dict(data.get("responses") or {}),
        )


@dataclass
class SessionRecord:
    """会话归档记录，保存时与实时状态完全独立（深拷贝）。"""

    id: str
    saved_at: int
    transcript: List[TranscriptEntry]
    conversations: Dict[str, List[Turn]]
    last_responses: Dict[str, List[RunOutcome]]
    triple_run: bool = False
    mode: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "savedAt": self.saved_at,
            "transcript": [e.to_dict() for e in self.transcript],
            "conversations": {pid: [t.to_dict() for t in turns] for pid, turns in self.conversations.items()},
            "lastResponses": {
                pid: [o.to_dict() for o in outcomes] for pid, outcomes in self.last_responses.items()
            },
            "tripleRun": self.triple_run,
            "mode": self.mode,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionRecord":
        conversations = data.get("conversations") or {}
        last_responses = data.get("lastResponses") or {}
        return cls(
            id=str(data["id"]),
            saved_at=int(data.get("savedAt") or 0),
            transcript=[TranscriptEntry.from_dict(e) for e in data.get("transcript") or []],
            conversations={pid: [Turn.from_dict(t) for t in turns or []] for pid, turns in conversations.items()},
            last_responses={
                pid: [RunOutcome.from_dict(o) for o in outcomes or []] for pid, outcomes in last_responses.items()
            },
            triple_run=bool(data.get("tripleRun")),
            mode=data.get("mode") if isinstance(data.get("mode"), str) else None,
        )


@dataclass
class SessionSummary:
    """归档列表中的一行摘要，供界面渲染。"""

    id: str
    saved_at: int
    headline: str
    turns: int
    mode_label: str


@dataclass
class DispatchReport:
    """一次 submit 的汇总结果。

    status:
        - "ok": 所有 Provider 都成功。
        - "partial": 至少一个 Provider 失败。
        - "invalid": prompt 为空，未做任何修改。
        - "busy": 已有请求在进行中，本次调用被忽略。
    """

    status: Literal["ok", "partial", "invalid", "busy"]
    message: str
    results: Dict[str, List[RunOutcome]] = field(default_factory=dict)

    @property
    def all_succeeded(self) -> bool:
        return self.status == "ok"


@dataclass
class ProviderView:
    """渲染边界：单个 Provider 列需要展示的全部信息。"""

    provider_id: str
    label: str
    model_display: str
    preset_label: str
    triple_run: bool
    outcomes: List[RunOutcome]
    docs_url: str = ""
    preset_description: str = ""

    @property
    def meta_line(self) -> str:
        base = self.preset_label.upper()
        return f"{base} | TRIPLE RUN" if self.triple_run else base
