from __future__ import annotations
import argparse
import logging
import sys

from . import report
from .backup import backup_configs
from .config import Settings, load_config, parse_interval
from .harden import enforce_nologin, lockdown_cron_at
from .integrity import make_watch
from .models import ConfigError
from .monitor import BaselineMonitor, TickResult
from .network import make_probe
from .persistence import PersistenceScanner
from .remediation import RemediationPolicy
from .tmux import launch_monitor, monitor_command
from .utils import C

logger = logging.getLogger("hostdefend")


def interval_arg(value: str) -> float:
    try:
        return parse_interval(value)
    except ConfigError as e:
        raise argparse.ArgumentTypeError(str(e))


def load_settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_config(load_config(args.config))
    if getattr(args, "interval", None) is not None:
        settings.interval = args.interval
    if getattr(args, "probe", None):
        settings.probe = args.probe
    settings.auto_remediate = bool(getattr(args, "auto", False))
    return settings


def relaunch_args(args: argparse.Namespace) -> list[str]:
    extra: list[str] = []
    if args.config:
        extra += ["--config", args.config]
    if args.interval is not None:
        extra += ["-i", str(args.interval)]
    if args.probe:
        extra += ["--probe", args.probe]
    return extra


def cmd_monitor(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    if args.tmux:
        failed = False
        for step in launch_monitor(monitor_command(relaunch_args(args))):
            print(report.color(step.message, C.GREEN if step.ok else C.RED))
            failed |= not step.ok
        return 1 if failed else 0

    probe = make_probe(settings.probe)
    watch = make_watch(settings.critical_files, settings.file_mode, settings.mtime_window)
    monitor = BaselineMonitor(probe, watch)
    policy = RemediationPolicy(auto_remediate=False)

    report.banner("Starting System Monitor (Ctrl+C to stop)...")
    count = monitor.take_baseline()
    print(report.color(f"Baseline taken: {count} processes.", C.BLUE))

    warned = False
    def on_tick(result: TickResult) -> None:
        nonlocal warned
        if not result.connections_available and not warned:
            logger.warning("Connection probe '%s' unavailable; session checks skipped", settings.probe)
            warned = True
        if result.findings:
            report.tick_header()
        for finding in result.findings:
            report.emit(policy.handle(finding))

    try:
        monitor.run(on_tick, interval=settings.interval, max_ticks=1 if args.once else None)
    except KeyboardInterrupt:
        print("\nStopping monitor.", file=sys.stderr)
    return 0


def cmd_persistence(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    scanner = PersistenceScanner(
        signatures=settings.signatures,
        ignore_users=settings.ignore_users,
        probe=make_probe(settings.probe),
        root=args.root,
    )
    policy = RemediationPolicy(settings.auto_remediate, signatures=settings.signatures)

    report.banner("Starting Persistence Scan...")
    for title, check in scanner.vectors():
        report.section(title)
        for finding in check():
            report.emit(policy.handle(finding))
    report.banner("Persistence Scan Complete.")
    return 0


def cmd_harden(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    failed = False
    report.banner("Starting System Hardening...")

    report.section("cron/at lockdown")
    for step in lockdown_cron_at(args.root):
        print(report.color(step.message, C.GREEN if step.ok else C.RED))
        failed |= not step.ok

    report.section("login shells")
    try:
        steps = enforce_nologin(settings.shell_whitelist, root=args.root)
    except OSError as e:
        print(report.color(f"Error enforcing nologin: {e}", C.RED))
        return 1
    if not steps:
        print(report.color("No users found needing nologin enforcement (based on whitelist).", C.GREEN))
    for step in steps:
        print(report.color(step.message, C.GREEN if step.ok else C.RED))
        failed |= not step.ok
    return 1 if failed else 0


def cmd_backup(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    dest = args.dest or settings.backup_dest
    report.banner("Starting Backup Process...")
    try:
        tar_name, result = backup_configs(dest, settings.backup_targets)
    except OSError as e:
        print(report.color(f"Failed to create {dest}: {e}", C.RED))
        return 1
    if not result.ok:
        print(report.color(f"Failed to create backup tarball: {result.error}", C.RED))
        return 1
    print(report.color(f"Backup created at {tar_name}", C.GREEN))
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="hostdefend", description="hostdefend - quick host defense for CCDC-style exercises")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_mon = sub.add_parser("monitor", help="Watch for new processes, sessions and critical file changes")
    p_mon.add_argument("--config", type=str, help="Config YAML")
    p_mon.add_argument("-i", "--interval", type=interval_arg, help="Poll interval in seconds (default 5)")
    p_mon.add_argument("--probe", choices=["ss", "psutil"], help="How to list established sessions")
    p_mon.add_argument("--once", action="store_true", help="Take the baseline, poll once and exit")
    p_mon.add_argument("-t", "--tmux", action="store_true", help="Relaunch the monitor in a tmux window")
    p_mon.set_defaults(func=cmd_monitor)

    p_per = sub.add_parser("persistence", help="Check for and remove common persistence mechanisms")
    p_per.add_argument("--config", type=str, help="Config YAML")
    p_per.add_argument("-a", "--auto", action="store_true", help="Automatically attempt to remove/fix found persistence")
    p_per.add_argument("--root", type=str, default="/", help="Filesystem root to scan (default /)")
    p_per.set_defaults(func=cmd_persistence)

    p_har = sub.add_parser("harden", help="Lock down cron/at and enforce nologin shells")
    p_har.add_argument("--config", type=str, help="Config YAML")
    p_har.add_argument("--root", type=str, default="/", help=argparse.SUPPRESS)
    p_har.set_defaults(func=cmd_harden)

    p_bak = sub.add_parser("backup", help="Tar up critical service configuration")
    p_bak.add_argument("--config", type=str, help="Config YAML")
    p_bak.add_argument("--dest", type=str, help="Override backup destination directory")
    p_bak.set_defaults(func=cmd_backup)

    return ap


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except ConfigError as e:
        parser.error(str(e))


if __name__ == "__main__":
    sys.exit(main())
