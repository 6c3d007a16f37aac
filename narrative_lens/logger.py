"""Logging setup and run persistence under workspace/."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

WORKSPACE = Path(__file__).resolve().parent.parent / "workspace"
LOGS_DIR = WORKSPACE / "logs"
RUNS_DIR = WORKSPACE / "runs"

_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def _ensure_dirs() -> None:
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    RUNS_DIR.mkdir(parents=True, exist_ok=True)


def setup_logger(
    name: str = "narrative-lens",
    verbosity: int = 1,
    run_id: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the shared logger.

    The stderr handler is installed once; a file handler is added per
    run id so each run gets its own log under workspace/logs/.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_LEVELS.get(verbosity, logging.DEBUG))

    fmt = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if not any(getattr(h, "_narrative_lens_stream", False) for h in logger.handlers):
        sh = logging.StreamHandler(sys.stderr)
        sh.setFormatter(fmt)
        sh._narrative_lens_stream = True
        logger.addHandler(sh)

    if run_id:
        _ensure_dirs()
        log_path = str(LOGS_DIR / f"{run_id}.log")
        if not any(getattr(h, "baseFilename", None) == log_path for h in logger.handlers):
            fh = logging.FileHandler(log_path, encoding="utf-8")
            fh.setFormatter(fmt)
            logger.addHandler(fh)

    return logger


def release_run_log(run_id: str, name: str = "narrative-lens") -> None:
    """Detach and close the file handler of a finished run."""
    logger = logging.getLogger(name)
    log_path = str(LOGS_DIR / f"{run_id}.log")
    for h in list(logger.handlers):
        if getattr(h, "baseFilename", None) == log_path:
            logger.removeHandler(h)
            h.close()


def generate_run_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")


def save_run(run_id: str, data: dict) -> Path:
    """Persist run JSON to workspace/runs/."""
    _ensure_dirs()
    p = RUNS_DIR / f"{run_id}.json"
    p.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    return p


def load_run(run_id: str) -> Optional[dict]:
    p = RUNS_DIR / f"{run_id}.json"
    if not p.exists():
        return None
    return json.loads(p.read_text(encoding="utf-8"))


def list_runs() -> list[dict]:
    """List saved runs, newest first. Unreadable files are skipped."""
    _ensure_dirs()
    runs = []
    for f in sorted(RUNS_DIR.glob("*.json"), reverse=True):
        try:
            meta = json.loads(f.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            continue
        results = meta.get("results", {})
        plot = results.get("plot_analysis") or {}
        runs.append({
            "run_id": f.stem,
            "file": str(f),
            "timestamp": meta.get("timestamp", ""),
            "input_chars": meta.get("input_char_count", 0),
            "word_count": results.get("word_count", 0),
            "format": plot.get("document_format", ""),
        })
    return runs


def list_logs() -> list[dict]:
    """List all log files, newest first."""
    _ensure_dirs()
    return [
        {"run_id": f.stem, "file": str(f), "size": f.stat().st_size}
        for f in sorted(LOGS_DIR.glob("*.log"), reverse=True)
    ]


def read_log(run_id: str) -> str:
    """Read a log file by run ID."""
    p = LOGS_DIR / f"{run_id}.log"
    if p.exists():
        return p.read_text(encoding="utf-8")
    return ""
