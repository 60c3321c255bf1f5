"""Provider 与模型预设配置。

本模块将"预设（mode）"与"具体厂商模型名"解耦：

- 预设 id：界面上切换的模式，例如 "standard"、"reasoning"。
- ModelChoice.model：厂商实际提供的模型 ID，例如 "gpt-4.1"。

切换预设只影响后续请求使用的模型，不会改动已有对话历史。"""

from dataclasses import dataclass
from typing import Dict, List, Mapping


@dataclass(frozen=True)
class ProviderInfo:
    """某个 Provider 的静态描述。"""

    id: str
    label: str
    docs_url: str


@dataclass(frozen=True)
class ModelChoice:
    """某个预设下单个 Provider 使用的模型。"""

    model: str
    display: str


@dataclass(frozen=True)
class ModelPreset:
    id: str
    label: str
    description: str
    models: Mapping[str, ModelChoice]


# 顺序即并发请求的发起顺序与界面列顺序
PROVIDERS: List[ProviderInfo] = [
    ProviderInfo(id="openai", label="OpenAI", docs_url="https://platform.openai.com/docs"),
    ProviderInfo(id="deepseek", label="DeepSeek", docs_url="https://platform.deepseek.com/docs"),
    ProviderInfo(id="google", label="Google Gemini", docs_url="https://ai.google.dev/models/gemini"),
]

PROVIDER_IDS: List[str] = [p.id for p in PROVIDERS]

DEFAULT_MODE = "standard"

MODEL_PRESETS: Dict[str, ModelPreset] = {
    "standard": ModelPreset(
        id="standard",
        label="Precision",
        description="Optimized for fast, production-ready chat responses.",
        models={
            "openai": ModelChoice(model="gpt-4.1", display="GPT-4.1 Instant"),
            "deepseek": ModelChoice(model="deepseek-chat", display="DeepSeek V3.2 Exp"),
            "google": ModelChoice(model="gemini-2.5-flash", display="Gemini 2.5 Flash"),
        },
    ),
    "reasoning": ModelPreset(
        id="reasoning",
        label="Reasoning",
        description="Maximize deep reasoning and structured thought.",
        models={
            "openai": ModelChoice(model="gpt-5", display="GPT-5 Thinking"),
            "deepseek": ModelChoice(model="deepseek-reasoner", display="DeepSeek V3.2 Thinking"),
            "google": ModelChoice(model="gemini-2.5-pro", display="Gemini 2.5 Pro"),
        },
    ),
}


def get_provider_info(provider_id: str) -> ProviderInfo:
    for info in PROVIDERS:
        if info.id == provider_id:
            return info
    raise KeyError(f"Unknown provider: {provider_id!r}")


def get_preset(mode: str | None) -> ModelPreset:
    """根据预设 id 获取 ModelPreset，未知 id 回退到默认预设。"""

    return MODEL_PRESETS.get(mode or DEFAULT_MODE) or MODEL_PRESETS[DEFAULT_MODE]
