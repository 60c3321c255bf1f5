"""调度器持有的实时状态。"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from studio_core.domain.conversation import ConversationStore
from studio_core.domain.models import RunOutcome, TranscriptEntry
from studio_core.providers.registry import DEFAULT_MODE


@dataclass
class StudioState:
    """一个调度器实例的全部可变状态。

    每个 Dispatcher 拥有自己的 StudioState，不存在模块级全局状态，
    因此可以并存多个相互独立的实例。
    """

    conversations: ConversationStore
    last_responses: Dict[str, List[RunOutcome]]
    transcript: List[TranscriptEntry] = field(default_factory=list)
    mode: str = DEFAULT_MODE
    triple_run: bool = False
    is_loading: bool = False
    last_prompt: str = ""

    @classmethod
    def empty(cls, provider_ids: Iterable[str], mode: str = DEFAULT_MODE) -> "StudioState":
        ids = list(provider_ids)
        return cls(
            conversations=ConversationStore(ids),
            last_responses={pid: [] for pid in ids},
            mode=mode,
        )

    @property
    def provider_ids(self) -> List[str]:
        return self.conversations.provider_ids
