"""Studio Core 顶层包。

该包实现"多模型对比工作台"的核心：把同一个 prompt 并发发给多个 LLM Provider，
汇总各自的结果（支持每个 Provider 多次采样），维护各 Provider 独立的对话历史，
并支持会话的保存与恢复。界面渲染由宿主负责。
"""

from studio_core.engine.dispatcher import Dispatcher
from studio_core.engine.state import StudioState

__all__ = ["Dispatcher", "StudioState"]
