"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置，优先级：
初始化参数 > 环境变量 > .env > config.yaml。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("STUDIO_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class StudioSettings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Provider 凭证（环境变量兜底，界面保存的密钥优先） ----
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API 密钥")
    deepseek_api_key: Optional[str] = Field(default=None, description="DeepSeek API 密钥")
    google_api_key: Optional[str] = Field(default=None, description="Google Gemini API 密钥")

    # ---- Provider 端点 ----
    openai_base_url: str = Field(default="https://api.openai.com/v1", description="OpenAI API 基础URL")
    deepseek_base_url: str = Field(default="https://api.deepseek.com/v1", description="DeepSeek API 基础URL")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini API 基础URL",
    )

    # 传输层超时；调度器本身不做超时控制
    http_timeout: float = Field(default=120.0, ge=1.0, description="HTTP 超时时间（秒）")

    storage_root: str = Field(default=".storage", description="存储根目录")
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    default_mode: str = Field(default="standard", description="启动时的模型预设")
    triple_run_count: int = Field(default=3, ge=2, le=10, description="多次采样模式下每个 Provider 的采样次数")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            _load_config_from_yaml,
            file_secret_settings,
        )


settings = StudioSettings()
