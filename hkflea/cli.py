"""
Hollow Knight: Silksong SavedFlea Editor

Converts save files (.dat) to canonical JSON and back, and edits the
SavedFlea flags through a plain-text report.

Usage:
    hk-flea-editor info <user1.dat>
    hk-flea-editor report <user1.dat> <fleas.txt>
    hk-flea-editor apply <user1.dat> <fleas.txt> <user1_new.dat>
    hk-flea-editor set <user1.dat> <user1_new.dat> SavedFlea_Bone_06=true
    hk-flea-editor export <user1.dat> <user1.json>
    hk-flea-editor import <user1.json> <user1_new.dat>
    hk-flea-editor history list

Add --plain to read and write Nintendo Switch (unencrypted) saves.

Copyright (C) 2026 wszqkzqk <wszqkzqk@qq.com>

This library is free software; you can redistribute it and/or
modify it under the terms of the GNU Lesser General Public
License as published by the Free Software Foundation; either
version 2.1 of the License, or (at your option) any later version.

This library is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
Lesser General Public License for more details.

You should have received a copy of the GNU Lesser General Public
License along with this library; if not, write to the Free Software
Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA  02110-1301  USA
"""

import argparse
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Optional

from hkflea import codec
from hkflea.codec import Mode
from hkflea.config import EditorConfig, load_config
from hkflea.errors import SaveEditorError
from hkflea.fields import FlagValue, parse_report
from hkflea.session import Session

# ============================================================================
# Helpers
# ============================================================================

def _mode(args, config: EditorConfig) -> Mode:
    return Mode.PLAIN if getattr(args, "plain", False) else config.mode


def _open_session(args, config: EditorConfig) -> Optional[Session]:
    """Create a session and open args.input, printing errors."""
    save_path = Path(args.input)
    if not save_path.exists():
        print(f"Error: File not found: {save_path}", file=sys.stderr)
        return None

    session = Session(config.make_cache(), mode=_mode(args, config))
    session.open(save_path.read_bytes(), save_path.name)
    return session


def _write_save(session: Session, output_path: Path, mode: Mode):
    output_path.write_bytes(session.export(mode))
    print(f"Saved {mode.value} save to: {output_path}")


def export_to_text(session: Session) -> str:
    """Summary of the open save for the info command."""
    flags = session.flags
    counts = Counter(value for _, value in flags)

    lines = []
    lines.append("=" * 60)
    lines.append(f"Silksong Save File: {session.name} ({session.mode.value})")
    lines.append("=" * 60)
    lines.append("")
    lines.append("[SavedFlea Fields]")
    width = max(len(name) for name, _ in flags)
    for name, value in flags:
        lines.append(f"  {name:<{width}}  {value.value}")
    lines.append("")
    lines.append("[Totals]")
    lines.append(f"  Rescued: {counts[FlagValue.TRUE]}")
    lines.append(f"  Not rescued: {counts[FlagValue.FALSE]}")
    lines.append(f"  Not present: {counts[FlagValue.ABSENT]}")
    return "\n".join(lines)


# ============================================================================
# Commands
# ============================================================================

def cmd_info(args, config: EditorConfig) -> int:
    """Show flag status of a save file."""
    session = _open_session(args, config)
    if session is None:
        return 1
    print(export_to_text(session))
    return 0


def cmd_report(args, config: EditorConfig) -> int:
    """Write the editable flag report."""
    session = _open_session(args, config)
    if session is None:
        return 1
    if args.output:
        Path(args.output).write_text(session.report, encoding="utf-8")
        print(f"Report written to: {args.output}")
    else:
        sys.stdout.write(session.report)
    return 0


def cmd_apply(args, config: EditorConfig) -> int:
    """Merge an edited report into a save and write the result."""
    report_path = Path(args.report)
    if not report_path.exists():
        print(f"Error: File not found: {report_path}", file=sys.stderr)
        return 1
    session = _open_session(args, config)
    if session is None:
        return 1

    report = report_path.read_text(encoding="utf-8")
    edits = parse_report(report)
    session.apply_report(report)
    flags = dict(session.flags)
    unapplied = [name for name, value in edits.items() if flags[name] is not value]
    if unapplied:
        print(f"Error: Could not apply {', '.join(unapplied)}: the save has no playerData section.", file=sys.stderr)
        return 1
    if not session.is_modified:
        print("No flag changes found in report.")
    out_mode = Mode.from_name(args.output_mode) if args.output_mode else session.mode
    _write_save(session, Path(args.output), out_mode)
    return 0


def cmd_set(args, config: EditorConfig) -> int:
    """Set individual flags given as NAME=VALUE."""
    session = _open_session(args, config)
    if session is None:
        return 1

    for assignment in args.assignments:
        name, sep, value = assignment.partition("=")
        if not sep:
            print(f"Error: Expected NAME=VALUE, got {assignment!r}", file=sys.stderr)
            return 1
        try:
            requested = FlagValue.coerce(value)
            result = session.set_flag(name.strip(), requested)
        except (KeyError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        if result is not requested:
            print(f"Error: Could not set {name.strip()}: the save has no playerData section.", file=sys.stderr)
            return 1
        print(f"{name.strip()}: {result.value}")

    out_mode = Mode.from_name(args.output_mode) if args.output_mode else session.mode
    _write_save(session, Path(args.output), out_mode)
    return 0


def cmd_export(args, config: EditorConfig) -> int:
    """Export save file to canonical JSON."""
    save_path = Path(args.input)
    output_path = Path(args.output)
    if not save_path.exists():
        print(f"Error: File not found: {save_path}", file=sys.stderr)
        return 1

    document = codec.decode(save_path.read_bytes(), _mode(args, config))
    output_path.write_text(document, encoding="utf-8")
    print(f"Exported to: {output_path}")
    return 0


def cmd_import(args, config: EditorConfig) -> int:
    """Import JSON and generate a save file."""
    json_path = Path(args.input)
    output_path = Path(args.output)
    if not json_path.exists():
        print(f"Error: File not found: {json_path}", file=sys.stderr)
        return 1

    data = codec.encode(json_path.read_text(encoding="utf-8"), _mode(args, config))
    output_path.write_bytes(data)
    print(f"Imported to: {output_path}")
    return 0


def cmd_history(args, config: EditorConfig) -> int:
    """List or prune the recent-file history."""
    cache = config.make_cache()
    if args.action == "list":
        if not len(cache):
            print("(No recent files)")
        for entry in cache:
            print(f"{entry.fingerprint[:12]}  {entry.timestamp}  {entry.display_name}")
    elif args.action == "remove":
        matches = [e for e in cache if e.fingerprint.startswith(args.fingerprint)] if args.fingerprint else []
        if len(matches) != 1:
            print(f"Error: {len(matches)} entries match {args.fingerprint!r}", file=sys.stderr)
            return 1
        cache.remove(matches[0].fingerprint)
        print(f"Removed: {matches[0].display_name}")
    elif args.action == "clear":
        cache.clear()
        print("History cleared.")
    return 0


# ============================================================================
# CLI
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hk-flea-editor",
        description="Hollow Knight: Silksong SavedFlea editor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s info user1.dat                          Show SavedFlea status
  %(prog)s report user1.dat fleas.txt              Write editable report
  %(prog)s apply user1.dat fleas.txt new.dat       Apply edited report
  %(prog)s set user1.dat new.dat SavedFlea_Dock_16=n/a
  %(prog)s --config my.yaml history list           Show recent files

Report values are true, false or n/a (n/a removes the field). Always keep a
backup of the original save.
"""
    )
    parser.add_argument("--config", help="Config file (default: $HKFLEA_CONFIG or ~/.config/hkflea/config.yaml)")
    parser.add_argument("--log-level", help="Override the configured log level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_input(sub, help_text="Input save file"):
        sub.add_argument("input", help=help_text)
        sub.add_argument("--plain", action="store_true", help="Nintendo Switch mode (unencrypted save)")

    def add_output_mode(sub):
        sub.add_argument("--output-mode", choices=[m.value for m in Mode],
                         help="Format of the written save (default: same as input)")

    info_parser = subparsers.add_parser("info", help="Show SavedFlea status of a save")
    add_input(info_parser)
    info_parser.set_defaults(func=cmd_info)

    report_parser = subparsers.add_parser("report", help="Write the editable flag report")
    add_input(report_parser)
    report_parser.add_argument("output", nargs="?", help="Output text file (default: stdout)")
    report_parser.set_defaults(func=cmd_report)

    apply_parser = subparsers.add_parser("apply", help="Apply an edited report to a save")
    add_input(apply_parser)
    apply_parser.add_argument("report", help="Edited report file")
    apply_parser.add_argument("output", help="Output save file")
    add_output_mode(apply_parser)
    apply_parser.set_defaults(func=cmd_apply)

    set_parser = subparsers.add_parser("set", help="Set flags directly")
    add_input(set_parser)
    set_parser.add_argument("output", help="Output save file")
    set_parser.add_argument("assignments", nargs="+", metavar="NAME=VALUE",
                            help="Flag assignment, value true, false or n/a")
    add_output_mode(set_parser)
    set_parser.set_defaults(func=cmd_set)

    export_parser = subparsers.add_parser("export", help="Export save to canonical JSON")
    add_input(export_parser)
    export_parser.add_argument("output", help="Output JSON file")
    export_parser.set_defaults(func=cmd_export)

    import_parser = subparsers.add_parser("import", help="Import JSON and generate a save")
    add_input(import_parser, "Input JSON file")
    import_parser.add_argument("output", help="Output save file")
    import_parser.set_defaults(func=cmd_import)

    history_parser = subparsers.add_parser("history", help="Manage recent files")
    history_parser.add_argument("action", choices=["list", "remove", "clear"])
    history_parser.add_argument("fingerprint", nargs="?", help="Fingerprint prefix (for remove)")
    history_parser.set_defaults(func=cmd_history)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except SaveEditorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    level = (args.log_level or config.log_level).upper()
    logging.basicConfig(level=getattr(logging, level, logging.WARNING),
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        return args.func(args, config)
    except SaveEditorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
