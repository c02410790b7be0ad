"""Configuration model for VoiceQuiz."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


def _config_path() -> Path:
    override = os.environ.get("VOICEQUIZ_CONFIG")
    if override:
        return Path(override)
    return Path.home() / ".voicequiz" / "config.yaml"


class QuizConfig(BaseModel):
    mistake_limit: int = Field(default=3, ge=1)
    match_threshold: float = Field(default=0.7, ge=0.0, le=1.0)


class SpeechConfig(BaseModel):
    enabled: bool = True


class Settings(BaseModel):
    data_dir: Path = Path.home() / ".voicequiz"
    levels_dir: Optional[Path] = None
    quiz: QuizConfig = Field(default_factory=QuizConfig)
    speech: SpeechConfig = Field(default_factory=SpeechConfig)
    log_level: str = "WARNING"

    @classmethod
    def load(cls) -> "Settings":
        config_path = _config_path()
        data: dict = {}
        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        settings = cls(**data)
        env_level = os.environ.get("VOICEQUIZ_LOG_LEVEL")
        if env_level:
            settings.log_level = env_level
        return settings

    def save(self) -> None:
        config_path = _config_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)

    @property
    def progress_db(self) -> Path:
        return self.data_dir / "progress.db"
