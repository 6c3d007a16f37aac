"""Tests for configuration loading."""

import json
import os
import tempfile

from narrative_lens.config import EngineConfig


class TestEngineConfig:
    def test_defaults(self):
        cfg = EngineConfig()
        assert cfg.max_analysis_chars == 500_000
        assert cfg.words_per_page == 250
        assert cfg.screenplay_lines_per_page == 55
        assert cfg.interaction_section_words == 1000
        assert cfg.arc_section_words == 2000
        assert cfg.max_loop_entries == 8
        assert cfg.max_excerpt_chars == 120
        assert cfg.use_screenplay_cues is False
        assert cfg.save_runs is False

    def test_load_from_dict(self):
        cfg = EngineConfig._from_dict({
            "words_per_page": 300,
            "use_screenplay_cues": True,
            "unknown_key": "ignored",
        })
        assert cfg.words_per_page == 300
        assert cfg.use_screenplay_cues is True
        assert not hasattr(cfg, "unknown_key")

    def test_load_from_file(self):
        d = {"max_analysis_chars": 2000, "arc_section_words": 500}
        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            json.dump(d, f)
            f.flush()
            cfg = EngineConfig.load(config_path=f.name)

        os.unlink(f.name)
        assert cfg.max_analysis_chars == 2000
        assert cfg.arc_section_words == 500

    def test_load_missing_file(self):
        cfg = EngineConfig.load(config_path="/nonexistent/path.json")
        assert cfg.max_analysis_chars == 500_000  # defaults

    def test_overrides(self):
        cfg = EngineConfig()
        cfg._apply_overrides({"verbosity": 2, "save_runs": True, "nope": 1})
        assert cfg.verbosity == 2
        assert cfg.save_runs is True
        assert not hasattr(cfg, "nope")

    def test_overrides_win_over_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"verbosity": 0}), encoding="utf-8")
        cfg = EngineConfig.load(config_path=path, overrides={"verbosity": 2})
        assert cfg.verbosity == 2

    def test_env_vars(self, monkeypatch):
        monkeypatch.setenv("NARRATIVE_LENS_VERBOSITY", "2")
        monkeypatch.setenv("NARRATIVE_LENS_MAX_CHARS", "1000")
        cfg = EngineConfig.load(config_path=None)
        assert cfg.verbosity == 2
        assert cfg.max_analysis_chars == 1000

    def test_bad_env_var_ignored(self, monkeypatch):
        monkeypatch.setenv("NARRATIVE_LENS_MAX_CHARS", "lots")
        cfg = EngineConfig.load(config_path=None)
        assert cfg.max_analysis_chars == 500_000

    def test_to_json_round_trip(self):
        cfg = EngineConfig(words_per_page=200)
        data = json.loads(cfg.to_json())
        assert data["words_per_page"] == 200
        assert EngineConfig._from_dict(data) == cfg
