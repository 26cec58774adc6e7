"""
PatchGate command line interface.

    patchgate apply <patch.json>      Apply patches with policy check + snapshot
    patchgate preview <patch.json>    Preview diffs without writing anything
    patchgate rollback <snapshot>     Undo a patch application
    patchgate history                 Show audit log of past runs
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from patchgate.audit.logger import format_history, read_log
from patchgate.core.config import Settings, get_settings
from patchgate.core.exceptions import ConfigurationError, PatchGateError
from patchgate.executor.diff import generate_diff
from patchgate.executor.snapshot import SnapshotStore, rollback
from patchgate.patches.models import PatchSet, RunResult
from patchgate.pipeline import RunOptions, run_sync
from patchgate.policy.engine import PolicyEngine
from patchgate.policy.loader import load_policy_config

logger = logging.getLogger(__name__)

RULE = "─" * 52


def load_patch_file(file_path: Path) -> PatchSet:
    """Read a patch set from JSON, or YAML for .yaml/.yml files."""
    if not file_path.is_file():
        raise ConfigurationError(f"File not found: {file_path}")
    try:
        text = file_path.read_text(encoding="utf-8")
        data = yaml.safe_load(text) if file_path.suffix.lower() in (".yaml", ".yml") else json.loads(text)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not parse patch file {file_path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("patches"), list):
        raise ConfigurationError(f"Patch file must be an object with a 'patches' list: {file_path}")
    return PatchSet.from_input(data)


def _should_auto_approve(args: argparse.Namespace, settings: Settings) -> bool:
    return args.yes or settings.ci or not sys.stdin.isatty()


def _print_result(result: RunResult) -> None:
    if result.blocked:
        print("\n🚫 Blocked by policy:")
        for b in result.blocked:
            print(f"   {b.path}: {b.reason}")
    if result.applied:
        print("\n✅ Applied:")
        for path in result.applied:
            print(f"   {path}")
    if result.skipped:
        print("\n⏭  Skipped:")
        for s in result.skipped:
            print(f"   {s.path}: {s.reason}")
    if result.errors:
        print("\n❌ Errors:")
        for e in result.errors:
            print(f"   {e.path}: {e.message}")
    if result.snapshot_path:
        print(f"\n💾 Snapshot saved: {result.snapshot_path}")
        print(f'   To undo: patchgate rollback "{result.snapshot_path}"')
    print("\n✓ Done.\n" if result.success else "\n⚠ Completed with errors.\n")


def cmd_apply(args: argparse.Namespace, settings: Settings) -> int:
    workdir = args.workdir
    patch_set = load_patch_file(Path(args.file))
    overrides: dict[str, Any] = {}
    if args.no_snapshot:
        overrides["enable_snapshot"] = False
    if args.fail_on_blocked:
        overrides["fail_on_blocked"] = True
    config = load_policy_config(workdir / settings.config_file, overrides)
    auto_approve = _should_auto_approve(args, settings)

    def on_preview(diffs: list[str]) -> bool:
        print(f"── Planned Changes {RULE[19:]}")
        for diff in diffs:
            print(diff)
        print(f"{RULE}\n")
        if auto_approve:
            return True
        return input("Apply these changes? [y/N] ").strip().lower() == "y"

    print(f"\n🔍 PatchGate: Applying {len(patch_set.patches)} patch(es)\n")
    result = run_sync(patch_set, RunOptions(workdir=workdir, config=config, on_preview=on_preview))
    _print_result(result)
    return 0 if result.success else 1


def cmd_preview(args: argparse.Namespace, settings: Settings) -> int:
    workdir = args.workdir
    patch_set = load_patch_file(Path(args.file))
    config = load_policy_config(workdir / settings.config_file)
    engine = PolicyEngine(config)
    blocklist = engine.effective_blocklist(patch_set.blocklist)

    print(f"\n🔍 Preview: {len(patch_set.patches)} patch(es)\n")
    for patch in patch_set.patches:
        print(f"── {(patch.op or '?').upper()}  {patch.path}")
        if patch.reason:
            print(f"   Reason: {patch.reason}")
        # Blocked targets are never read
        if reason := engine.check_patch(patch, blocklist):
            print(f"[x] BLOCKED  {reason}")
        else:
            print(generate_diff(patch, workdir))
        print()
    return 0


def cmd_rollback(args: argparse.Namespace, settings: Settings) -> int:
    workdir = args.workdir
    if args.latest:
        snapshot_dir = SnapshotStore(workdir).latest()
        if snapshot_dir is None:
            print("❌ No snapshots found.", file=sys.stderr)
            return 1
    elif args.snapshot:
        snapshot_dir = Path(args.snapshot)
    else:
        print('❌ Usage: patchgate rollback "<snapshot-dir>" | --latest', file=sys.stderr)
        return 1

    report = rollback(snapshot_dir, workdir)
    print(f"\n✅ Rolled back from: {snapshot_dir}")
    print(f"   restored:{len(report.restored)} removed:{len(report.removed)} unchanged:{len(report.unchanged)}\n")
    return 0


def cmd_history(args: argparse.Namespace, settings: Settings) -> int:
    entries = read_log(args.workdir)
    if not entries:
        print("\n📋 No history found.\n")
        return 0
    print()
    print("\n".join(format_history(entries, args.limit or settings.history_limit)))
    print()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="patchgate",
        description="Policy enforcement and rollback for AI agent code edits",
    )
    parser.add_argument("--workdir", type=Path, default=Path("."), help="Working directory (default: .)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_apply = sub.add_parser("apply", help="Apply patches with policy check + snapshot")
    p_apply.add_argument("file", help="Patch set file (.json, .yaml)")
    p_apply.add_argument("-y", "--yes", action="store_true", help="Apply without asking")
    p_apply.add_argument("--no-snapshot", action="store_true", help="Skip the rollback snapshot")
    p_apply.add_argument("--fail-on-blocked", action="store_true", help="Apply nothing if any patch is blocked")
    p_apply.set_defaults(handler=cmd_apply)

    p_preview = sub.add_parser("preview", help="Preview diffs without writing anything")
    p_preview.add_argument("file", help="Patch set file (.json, .yaml)")
    p_preview.set_defaults(handler=cmd_preview)

    p_rollback = sub.add_parser("rollback", help="Undo a patch application")
    p_rollback.add_argument("snapshot", nargs="?", help="Snapshot directory")
    p_rollback.add_argument("--latest", action="store_true", help="Use the most recent snapshot")
    p_rollback.set_defaults(handler=cmd_rollback)

    p_history = sub.add_parser("history", help="Show audit log of past runs")
    p_history.add_argument("--limit", type=int, default=None, help="Number of runs to show")
    p_history.set_defaults(handler=cmd_history)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args.workdir = args.workdir.resolve()

    try:
        return args.handler(args, settings)
    except PatchGateError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
