"""Output location configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "dupmerge"


@dataclass(frozen=True, slots=True)
class OutputConfig:
    output_dir: Path

    def resolve_output_dir(self) -> Path:
        return self.output_dir.expanduser().resolve()

    def ensure_output_dir(self) -> Path:
        output_dir = self.resolve_output_dir()
        output_dir.mkdir(parents=True, exist_ok=True)
        return output_dir


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_output_config() -> OutputConfig:
    env_dir = os.getenv("DUPMERGE_OUTPUT_DIR")
    output_dir = Path(env_dir) if env_dir else _default_data_dir()
    return OutputConfig(output_dir=output_dir)
