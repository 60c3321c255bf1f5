"""按 Provider 划分的对话历史。

每个 Provider 维护一条独立、只追加的 Turn 序列。调度器是唯一的写入方，
适配器只拿到 history() 返回的副本。
"""
import copy
from typing import Dict, Iterable, List, Mapping

from .models import Turn


class ConversationStore:
    def __init__(self, provider_ids: Iterable[str]):
        self._turns: Dict[str, List[Turn]] = {pid: [] for pid in provider_ids}

    @property
    def provider_ids(self) -> List[str]:
        return list(self._turns)

    def append_turn(self, provider_id: str, turn: Turn) -> None:
        # 未知 provider_id 属于编程错误，直接抛 KeyError
        self._turns[provider_id].append(turn)

    def history(self, provider_id: str) -> List[Turn]:
        return [Turn(role=t.role, content=t.content) for t in self._turns[provider_id]]

    def snapshot(self) -> Dict[str, List[Turn]]:
        return copy.deepcopy(self._turns)

    def restore(self, conversations: Mapping[str, List[Turn]]) -> None:
        """用快照整体替换当前历史；快照中缺失的 Provider 置为空。"""
        self._turns = {pid: copy.deepcopy(list(conversations.get(pid) or [])) for pid in self._turns}
