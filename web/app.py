"""Flask JSON API for narrative-lens."""

from __future__ import annotations

import argparse
import os
import sys
import threading
from pathlib import Path
from typing import Any, Optional

from flask import Flask, Blueprint, jsonify, request
from werkzeug.middleware.proxy_fix import ProxyFix

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv
load_dotenv()

from narrative_lens.agents.report_builder import build_markdown_report
from narrative_lens.config import EngineConfig
from narrative_lens.logger import generate_run_id, list_logs, list_runs, load_run, read_log
from narrative_lens.models import ManuscriptReport
from narrative_lens.orchestrator import Orchestrator

bp = Blueprint("main", __name__)

_active_runs: dict[str, dict] = {}
_active_runs_lock = threading.Lock()

URL_PREFIX = os.getenv("URL_PREFIX", "")
CONFIG_PATH = os.getenv("NARRATIVE_LENS_CONFIG", "config.json")

_WEB_CONFIG_KEYS = {
    "words_per_page", "screenplay_lines_per_page",
    "interaction_section_words", "arc_section_words",
    "max_loop_entries", "max_excerpt_chars",
    "use_screenplay_cues", "verbosity",
}


@bp.route("/api/config", methods=["GET"])
def get_config():
    return jsonify(EngineConfig.load(config_path=CONFIG_PATH).to_dict())


@bp.route("/api/analyze", methods=["POST"])
def analyze():
    data = request.get_json(force=True, silent=True) or {}
    text = (data.get("text") or "").strip()
    if not text:
        return jsonify({"error": "Text is required."}), 400

    names = data.get("character_names") or []
    if not isinstance(names, list):
        return jsonify({"error": "character_names must be a list."}), 400

    page_count = data.get("page_count")
    if page_count is not None:
        try:
            page_count = int(page_count)
        except (TypeError, ValueError):
            return jsonify({"error": "page_count must be an integer."}), 400

    overrides = data.get("config") or {}
    if not isinstance(overrides, dict):
        return jsonify({"error": "config must be an object."}), 400

    config = EngineConfig.load(config_path=CONFIG_PATH)
    try:
        _apply_web_config(config, overrides)
    except (TypeError, ValueError):
        return jsonify({"error": "config values must be integers."}), 400
    config.save_runs = True

    run_id = generate_run_id()
    with _active_runs_lock:
        _active_runs[run_id] = {
            "status": "running",
            "progress": 0.0,
            "stage": "starting",
            "cancel": False,
        }

    kwargs = {
        "outline": data.get("outline"),
        "page_mapping": data.get("page_mapping"),
        "character_names": [str(n) for n in names],
        "page_count_override": page_count,
    }
    thread = threading.Thread(
        target=_run_analysis_in_thread,
        args=(run_id, config, text, kwargs),
        daemon=True,
    )
    thread.start()

    return jsonify({"run_id": run_id, "status": "started"})


@bp.route("/api/status/<run_id>", methods=["GET"])
def run_status(run_id: str):
    with _active_runs_lock:
        info = _active_runs.get(run_id)

    if not info:
        if load_run(run_id) is not None:
            return jsonify({"status": "completed", "run_id": run_id})
        return jsonify({"error": "Run not found."}), 404

    return jsonify({
        "run_id": run_id,
        "status": info["status"],
        "stage": info.get("stage", ""),
        "progress": info.get("progress", 0),
        "error": info.get("error"),
    })


@bp.route("/api/result/<run_id>", methods=["GET"])
def run_result(run_id: str):
    with _active_runs_lock:
        info = _active_runs.get(run_id, {})

    if info.get("status") == "completed":
        return jsonify({
            "run_id": run_id,
            "markdown": info.get("markdown", ""),
            "json_report": info.get("json_report"),
        })

    report_data = load_run(run_id)
    if report_data is not None:
        report = ManuscriptReport(**report_data)
        return jsonify({
            "run_id": run_id,
            "markdown": build_markdown_report(report),
            "json_report": report_data,
        })

    return jsonify({"error": "Result not ready."}), 404


@bp.route("/api/cancel/<run_id>", methods=["POST"])
def cancel_run(run_id: str):
    with _active_runs_lock:
        info = _active_runs.get(run_id)
        if info and info["status"] == "running":
            info["cancel"] = True
            return jsonify({"status": "cancelling"})
    return jsonify({"error": "Run not found or not running."}), 404


@bp.route("/api/runs", methods=["GET"])
def get_runs():
    return jsonify(list_runs())


@bp.route("/api/logs", methods=["GET"])
def get_logs():
    return jsonify(list_logs())


@bp.route("/api/logs/<run_id>", methods=["GET"])
def get_log(run_id: str):
    content = read_log(run_id)
    if content:
        return jsonify({"run_id": run_id, "content": content})
    return jsonify({"error": "Log not found."}), 404


def _run_analysis_in_thread(
    run_id: str,
    config: EngineConfig,
    text: str,
    kwargs: Optional[dict[str, Any]] = None,
) -> None:
    """Run one analysis and record its outcome in the active-runs table."""

    def progress_cb(stage: str, pct: float):
        with _active_runs_lock:
            info = _active_runs.get(run_id)
            if info:
                info["stage"] = stage
                info["progress"] = pct

    def cancel_check() -> bool:
        with _active_runs_lock:
            info = _active_runs.get(run_id)
            return info.get("cancel", False) if info else False

    try:
        orchestrator = Orchestrator(
            config=config,
            run_id=run_id,
            progress_cb=progress_cb,
            cancel_check=cancel_check,
        )
        md_report, _, report = orchestrator.run(text, **(kwargs or {}))

        with _active_runs_lock:
            _active_runs[run_id] = {
                "status": "completed",
                "stage": "done",
                "progress": 1.0,
                "markdown": md_report,
                "json_report": report.model_dump(mode="json"),
            }

    except Exception as e:
        with _active_runs_lock:
            _active_runs[run_id] = {
                "status": "error",
                "stage": "error",
                "progress": 0,
                "error": str(e),
            }


def _apply_web_config(config: EngineConfig, overrides: dict) -> None:
    """Apply config overrides from a request (safe subset only).

    Raises ValueError or TypeError when a numeric setting is not an integer.
    """
    for k, v in overrides.items():
        if k not in _WEB_CONFIG_KEYS:
            continue
        if k == "use_screenplay_cues":
            setattr(config, k, bool(v))
        else:
            setattr(config, k, int(v))


def create_app() -> Flask:
    app = Flask(__name__)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)

    if URL_PREFIX:
        app.register_blueprint(bp, url_prefix=URL_PREFIX)
    else:
        app.register_blueprint(bp)

    return app


def main():
    parser = argparse.ArgumentParser(description="narrative-lens web API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8020)
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    app = create_app()
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
