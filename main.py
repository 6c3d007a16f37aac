#!/usr/bin/env python3
"""CLI entry point for narrative-lens."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from narrative_lens.agents.character_analyzer import canonical_names_from_profiles
from narrative_lens.config import EngineConfig
from narrative_lens.orchestrator import Orchestrator


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="narrative-lens",
        description="Analyze the structure, prose, dialogue and characters of a manuscript.",
    )
    parser.add_argument(
        "-s", "--source",
        default="source.txt",
        help="Path to manuscript text file (default: source.txt)",
    )
    parser.add_argument(
        "-c", "--config",
        default="config.json",
        help="Path to config file (default: config.json)",
    )
    parser.add_argument(
        "-o", "--output",
        default="result.md",
        help="Path for Markdown output (default: result.md)",
    )
    parser.add_argument(
        "-j", "--json-output",
        default="result.json",
        help="Path for JSON output (default: result.json)",
    )
    parser.add_argument(
        "--characters",
        default="",
        help="Comma-separated character profile names, e.g. 'John Reed,Mary Shaw'",
    )
    parser.add_argument(
        "--characters-file",
        default="",
        help="File with one character profile name per line",
    )
    parser.add_argument(
        "--outline",
        default="",
        help="JSON file with a list of outline entries {title, level, location, length}",
    )
    parser.add_argument(
        "--pages",
        type=int,
        default=None,
        help="Override the estimated page count",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=None,
        help="Increase verbosity (-v for INFO, -vv for DEBUG)",
    )
    parser.add_argument(
        "--save-run",
        action="store_true",
        help="Persist the run report and log under workspace/",
    )
    return parser.parse_args(argv)


def _profile_names(args: argparse.Namespace) -> list[str]:
    names = [n for n in args.characters.split(",") if n.strip()]
    if args.characters_file:
        path = Path(args.characters_file)
        if not path.exists():
            raise FileNotFoundError(f"characters file not found: {path}")
        names.extend(line for line in path.read_text(encoding="utf-8").splitlines() if line.strip())
    return canonical_names_from_profiles(names)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    source_path = Path(args.source)
    if not source_path.exists():
        print(f"Error: source file not found: {source_path}", file=sys.stderr)
        return 1
    text = source_path.read_text(encoding="utf-8")

    try:
        character_names = _profile_names(args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    outline = None
    if args.outline:
        outline_path = Path(args.outline)
        if not outline_path.exists():
            print(f"Error: outline file not found: {outline_path}", file=sys.stderr)
            return 1
        try:
            outline = json.loads(outline_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            print(f"Error: outline is not valid JSON: {e}", file=sys.stderr)
            return 1

    overrides = {}
    if args.verbose is not None:
        overrides["verbosity"] = args.verbose
    if args.save_run:
        overrides["save_runs"] = True

    config = EngineConfig.load(config_path=args.config, overrides=overrides)
    orchestrator = Orchestrator(config=config)

    try:
        md_report, json_report, report = orchestrator.run(
            text,
            outline=outline,
            character_names=character_names,
            page_count_override=args.pages,
        )
    except (ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    output_path = Path(args.output)
    output_path.write_text(md_report, encoding="utf-8")
    print(f"Markdown report written to: {output_path}")

    json_path = Path(args.json_output)
    json_path.write_text(json_report, encoding="utf-8")
    print(f"JSON report written to: {json_path}")

    results = report.results
    plot = results.plot_analysis
    print(f"\nWords: {results.word_count}, pages: {results.page_count}")
    if plot is not None:
        print(f"Format: {plot.document_format.value}, structure score: {plot.structure_score}/100")
    print(f"Dialogue quality: {results.dialogue_quality_score}/100")
    print(f"Run ID: {orchestrator.run_id}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
