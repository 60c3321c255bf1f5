import pytest

from studio_core.providers import create_adapter, create_adapters
from studio_core.providers.deepseek_client import DeepSeekClient
from studio_core.providers.gemini_client import GeminiClient
from studio_core.providers.openai_client import OpenAIClient
from studio_core.providers.registry import MODEL_PRESETS, PROVIDER_IDS, get_preset, get_provider_info


def test_create_adapter_explicit(settings_stub):
    assert isinstance(create_adapter("openai", settings_stub), OpenAIClient)
    assert isinstance(create_adapter("DeepSeek", settings_stub), DeepSeekClient)
    assert isinstance(create_adapter("google", settings_stub), GeminiClient)


def test_create_adapter_unknown():
    with pytest.raises(KeyError):
        create_adapter("anthropic")


def test_create_adapters_follows_registry_order(settings_stub):
    adapters = create_adapters(settings_stub)
    assert list(adapters) == PROVIDER_IDS == ["openai", "deepseek", "google"]


def test_every_preset_covers_every_provider():
    for preset in MODEL_PRESETS.values():
        assert set(preset.models) == set(PROVIDER_IDS)
    assert get_preset("reasoning").models["openai"].model == "gpt-5"
    assert get_preset("no-such-mode").id == "standard"
    assert get_provider_info("google").label == "Google Gemini"
