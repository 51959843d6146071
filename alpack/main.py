from __future__ import annotations

import argparse
import dataclasses
import logging
import shlex
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .errors import AlpackError, RootfsMissingError, UsageError
from .lib.apk import apk_command
from .lib.sandbox import Sandbox
from .logging_utils import configure_logging, verbosity_to_level
from .provision import make_context, run_setup
from .render import finish_message, render_error
from .settings import ConfigStore, Settings

logger = logging.getLogger(__name__)

PROG = "alpack"


def _rootfs_for(args: argparse.Namespace, settings: Settings) -> Path:
    rootfs = Path(args.rootfs or settings.resolved_rootfs())
    if not rootfs.is_dir():
        raise RootfsMissingError(str(rootfs))
    return rootfs


def cmd_setup(args: argparse.Namespace, settings: Settings, store: ConfigStore) -> int:
    ctx = make_context(
        settings,
        rootfs=args.rootfs,
        cache=args.cache,
        mirror=args.mirror,
        no_cache=bool(args.no_cache),
        reinstall=bool(args.reinstall),
        edge=bool(args.edge),
        minimal=bool(args.minimal),
        progress=sys.stderr.isatty(),
    )
    run_setup(ctx)
    print(finish_message(PROG))
    return 0


def cmd_config(args: argparse.Namespace, settings: Settings, store: ConfigStore) -> int:
    updated = dataclasses.replace(settings)
    for field in ("cmd_rootfs", "release", "cache_dir", "rootfs_dir", "output_dir", "default_mirror"):
        value = getattr(args, field, None)
        if value is not None:
            setattr(updated, field, value)

    sys.stdout.write(store.diff_report(updated, color=sys.stdout.isatty()))
    if updated != settings:
        store.save(updated)
    return 0


def cmd_run(args: argparse.Namespace, settings: Settings, store: ConfigStore) -> int:
    sandbox = Sandbox(settings.cmd_rootfs, _rootfs_for(args, settings))

    commands = list(args.command or [])
    extra = list(args.args or [])
    if extra and extra[0] == "--":
        extra = extra[1:]
    if extra:
        commands.append(shlex.join(extra))

    binds = list(args.bind or [])
    if not commands:
        sandbox.run(["/bin/sh", "-l"], root=bool(args.root), binds=binds)
        return 0

    for command in commands:
        sandbox.run(["/bin/sh", "-c", command], root=bool(args.root), binds=binds)
    return 0


def cmd_apk(args: argparse.Namespace, settings: Settings, store: ConfigStore) -> int:
    rest = list(args.args or [])
    subcommand = args.apk_subcommand
    if args.search is not None:
        subcommand, rest = "search", list(args.search) + rest
    elif args.update:
        subcommand = "update"
    if subcommand is None:
        if not rest:
            raise UsageError("apk: no command specified", hint=f"Use '{PROG} --help' to see available options.")
        subcommand, rest = rest[0], rest[1:]

    sandbox = Sandbox(settings.cmd_rootfs, _rootfs_for(args, settings))
    sandbox.run_shell(apk_command(subcommand, rest), root=True)
    return 0


def _add_rootfs_arg(p: argparse.ArgumentParser) -> None:
    p.add_argument("-R", "--rootfs", default=None, help="Rootfs directory (default: configured rootfs)")


def _add_apk_short_flags(p: argparse.ArgumentParser) -> None:
    # "-s" and "-u" can't be subcommand names, so they are options here.
    p.add_argument("-s", dest="search", nargs=argparse.REMAINDER, default=None, metavar="PKG", help="Same as 'search'")
    p.add_argument("-u", dest="update", action="store_true", help="Same as 'update'")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog=PROG,
        description="Create and manage Alpine Linux rootfs containers using proot or bubblewrap (bwrap).",
        epilog=(
            "Environment variables: ALPACK_ARCH (target architecture), ALPACK_ROOTFS (rootfs path), "
            "ALPACK_CACHE (cache path), ALPACK_CONFIG (config file path)."
        ),
    )
    p.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Show info (-v) or debug (-vv) logs")
    p.add_argument("--log", default=None, help="Path to the log file")
    _add_apk_short_flags(p)
    # Without a subcommand we open a shell in the rootfs.
    p.set_defaults(func=cmd_run, rootfs=None, root=False, command=None, bind=None, args=[], apk_subcommand=None)

    sub = p.add_subparsers(dest="subcommand", metavar="<command>")

    s = sub.add_parser("setup", help="Download and install the Alpine rootfs")
    s.add_argument("--no-cache", action="store_true", help="Download into a temporary cache removed after extraction")
    s.add_argument("-r", "--reinstall", action="store_true", help="Install even if the rootfs directory already exists")
    s.add_argument("--edge", action="store_true", help="Use the edge release (adds the testing repository)")
    s.add_argument("--minimal", action="store_true", help="Skip installing the build toolchain")
    s.add_argument("--mirror", default=None, metavar="URL", help="Use this mirror instead of the configured one")
    s.add_argument("--cache", default=None, metavar="DIR", help="Cache directory")
    _add_rootfs_arg(s)
    s.set_defaults(func=cmd_setup)

    c = sub.add_parser("config", help="Display or modify the global configuration")
    handler = c.add_mutually_exclusive_group()
    handler.add_argument("--use-proot", dest="cmd_rootfs", action="store_const", const="proot", help="Use proot (default)")
    handler.add_argument("--use-bwrap", dest="cmd_rootfs", action="store_const", const="bwrap", help="Use bwrap")
    release = c.add_mutually_exclusive_group()
    release.add_argument(
        "--use-latest-stable", dest="release", action="store_const", const="latest-stable", help="Use latest-stable (default)"
    )
    release.add_argument("--use-edge", dest="release", action="store_const", const="edge", help="Use edge")
    c.add_argument("--cache-dir", default=None, metavar="DIR")
    c.add_argument("--rootfs-dir", default=None, metavar="DIR")
    c.add_argument("--output-dir", default=None, metavar="DIR", help="Output directory (default: current directory)")
    c.add_argument("--default-mirror", default=None, metavar="URL")
    c.set_defaults(func=cmd_config)

    r = sub.add_parser("run", help="Execute commands inside the rootfs")
    r.add_argument("-0", "--root", action="store_true", help="Run with root privileges inside the rootfs")
    r.add_argument("-c", "--command", action="append", metavar="CMD", help="Command to run (repeatable)")
    r.add_argument("-b", "--bind", action="append", metavar="SRC[:DST]", help="Extra bind mount (repeatable)")
    _add_rootfs_arg(r)
    r.add_argument("args", nargs=argparse.REMAINDER, help="Command and arguments after --")
    r.set_defaults(func=cmd_run)

    a = sub.add_parser("apk", help="Run the Alpine package manager inside the rootfs")
    _add_rootfs_arg(a)
    _add_apk_short_flags(a)
    a.add_argument("args", nargs=argparse.REMAINDER, help="apk subcommand and arguments")
    a.set_defaults(func=cmd_apk, apk_subcommand=None)

    for name, aliases, help_text in [
        ("add", ["install"], "Install packages into the rootfs"),
        ("del", ["remove"], "Remove packages from the rootfs"),
        ("search", [], "Search for available packages"),
        ("update", [], "Update the package index and upgrade installed packages"),
        ("fix", [], "Attempt to fix broken packages"),
    ]:
        sp = sub.add_parser(name, aliases=aliases, help=help_text)
        _add_rootfs_arg(sp)
        sp.add_argument("args", nargs="*", metavar="ARGS")
        sp.set_defaults(func=cmd_apk, apk_subcommand=name)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.subcommand is None and (args.search is not None or args.update):
        args.func = cmd_apk

    configure_logging(log_path=args.log, console_level=verbosity_to_level(args.verbose))

    try:
        store = ConfigStore()
        settings = store.load_or_create()
        return args.func(args, settings, store)
    except AlpackError as e:
        logger.debug("%s failed", args.subcommand or "run", exc_info=True)
        print(render_error(e, PROG), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print(f"{PROG}: interrupted", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
