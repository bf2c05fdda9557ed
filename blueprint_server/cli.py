#!/usr/bin/env python3
"""Blueprint tool CLI - serve the editor host or work on blueprint JSON files."""

import argparse
import json
import sys
from pathlib import Path

from blueprint_core import (
    MalformedBlueprintError,
    decode_blueprint,
    dumps_blueprint,
    get_settings,
    new_blueprint,
    render_report,
    report_filename,
    starter_blueprint,
    summarize_blueprint,
    validate_blueprint,
    validation_summary,
)
from blueprint_core.logging_config import configure_logging


def _json_out(data, code=0):
    print(json.dumps(data))
    sys.exit(code)


def _error_out(message, **extra):
    _json_out({"status": "error", "error": message, **extra}, code=1)


def _load(file_path):
    """Decode a blueprint file, exiting with a JSON error when it cannot be read."""
    path = Path(file_path)
    if not path.exists():
        _error_out(f"Blueprint file not found: {path}")
    try:
        return decode_blueprint(path.read_text(encoding="utf-8"))
    except MalformedBlueprintError as e:
        _error_out(str(e), issues=e.issues)


def _write(blueprint, output):
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps_blueprint(blueprint), encoding="utf-8")
    return path


# ── Service ──────────────────────────────────────────────────────────────────

def cmd_serve(args):
    from .main import run

    run(host=args.host, port=args.port)


# ── Files ────────────────────────────────────────────────────────────────────

def cmd_new(args):
    blueprint = new_blueprint(title=args.title, description=args.description)
    path = _write(blueprint, args.output)
    _json_out({"status": "created", "file_path": str(path), "id": blueprint.id})


def cmd_generate(args):
    try:
        blueprint = starter_blueprint(args.description, title=args.title)
    except ValueError as e:
        _error_out(str(e))
    path = _write(blueprint, args.output)
    _json_out({
        "status": "generated",
        "file_path": str(path),
        "id": blueprint.id,
        "nodes": len(blueprint.nodes),
        "connections": len(blueprint.connections),
    })


def cmd_export(args):
    blueprint = _load(args.file_path)
    markdown = render_report(blueprint)
    filename = report_filename(blueprint)
    result = {"status": "exported", "filename": filename}
    if args.output_dir:
        directory = Path(args.output_dir)
        directory.mkdir(parents=True, exist_ok=True)
        (directory / filename).write_text(markdown, encoding="utf-8")
        result["file_path"] = str(directory / filename)
    else:
        result["markdown"] = markdown
    _json_out(result)


def cmd_validate(args):
    # Structural errors already fail decoding; what remains are warnings and info
    blueprint = _load(args.file_path)
    issues = validate_blueprint(blueprint)
    summary = validation_summary(issues)
    _json_out({
        "status": "valid" if summary["valid"] else "invalid",
        "summary": summary,
        "issues": [i.to_dict() for i in issues],
    })


def cmd_summary(args):
    blueprint = _load(args.file_path)
    _json_out({"status": "ok", "summary": summarize_blueprint(blueprint, top_n=args.top).to_dict()})


def main(argv=None):
    parser = argparse.ArgumentParser(description="Blueprint editor CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    # Service
    p = sub.add_parser("serve")
    p.add_argument("--host", default=None)
    p.add_argument("--port", type=int, default=None)

    # Files
    p = sub.add_parser("new")
    p.add_argument("output")
    p.add_argument("--title", default="New Blueprint")
    p.add_argument("--description", default=None)

    p = sub.add_parser("generate")
    p.add_argument("description")
    p.add_argument("output")
    p.add_argument("--title", default=None)

    p = sub.add_parser("export")
    p.add_argument("file_path")
    p.add_argument("--output-dir", default=None)

    p = sub.add_parser("validate")
    p.add_argument("file_path")

    p = sub.add_parser("summary")
    p.add_argument("file_path")
    p.add_argument("--top", type=int, default=5)

    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level, settings.json_logs)

    cmd_map = {
        "serve": cmd_serve,
        "new": cmd_new,
        "generate": cmd_generate,
        "export": cmd_export,
        "validate": cmd_validate,
        "summary": cmd_summary,
    }
    cmd_map[args.command](args)


if __name__ == "__main__":
    main()
