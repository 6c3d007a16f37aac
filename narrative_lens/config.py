"""Configuration management for narrative-lens."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger("narrative-lens")

_ENV_INT_KEYS = {
    "NARRATIVE_LENS_VERBOSITY": "verbosity",
    "NARRATIVE_LENS_MAX_CHARS": "max_analysis_chars",
}


@dataclass
class EngineConfig:
    max_analysis_chars: int = 500_000

    # Page estimates
    words_per_page: int = 250
    screenplay_lines_per_page: int = 55

    # Section sizes (words)
    interaction_section_words: int = 1000
    arc_section_words: int = 2000

    # Character extraction
    max_loop_entries: int = 8
    max_excerpt_chars: int = 120
    use_screenplay_cues: bool = False

    verbosity: int = 1
    save_runs: bool = False

    @classmethod
    def load(
        cls,
        config_path: str | Path | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> "EngineConfig":
        """Load config from JSON file, env vars, and optional overrides."""
        raw: dict[str, Any] = {}

        if config_path:
            p = Path(config_path)
            if p.exists():
                raw = json.loads(p.read_text(encoding="utf-8"))

        cfg = cls._from_dict(raw)

        for env_key, attr in _ENV_INT_KEYS.items():
            value = os.getenv(env_key, "")
            if not value:
                continue
            try:
                setattr(cfg, attr, int(value))
            except ValueError:
                logger.warning("Ignoring non-integer %s=%r", env_key, value)

        if overrides:
            cfg._apply_overrides(overrides)

        return cfg

    @classmethod
    def _from_dict(cls, d: dict[str, Any]) -> "EngineConfig":
        cfg = cls()
        known = {f.name for f in fields(cls)}
        for k, v in d.items():
            if k in known:
                setattr(cfg, k, v)
        return cfg

    def _apply_overrides(self, ov: dict[str, Any]) -> None:
        for k, v in ov.items():
            if hasattr(self, k) and not isinstance(v, dict):
                setattr(self, k, v)

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)
