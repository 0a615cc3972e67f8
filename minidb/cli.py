"""Interactive command loop for the database."""

from __future__ import annotations

import argparse
import sys
from typing import Iterable, List, Optional, TextIO

from .manager import DBManager
from .parser import SQLParser

_WELCOME = (
    "欢迎使用MiniDB数据库管理系统",
    "输入SQL语句执行操作，输入exit退出系统",
    "------------------------------------------",
)
_GOODBYE = "再见！"
_EXIT_COMMANDS = frozenset({"exit", "quit"})


def prompt(manager: DBManager) -> str:
    """Return the prompt, showing the current database when one is selected."""
    current = manager.current_database_name()
    if not current:
        return "MiniDB> "
    return f"MiniDB [{current}]> "


def run(manager: DBManager, lines: Iterable[str], out: TextIO) -> None:
    """Read statements from ``lines`` and write prompts and results to ``out``.

    A statement may span several lines and ends at a line ending in ``;``.
    ``clear`` discards the pending statement; ``exit`` or ``quit`` stops.
    The loop also stops when the input runs out.
    """
    parser = SQLParser(manager)
    for line in _WELCOME:
        print(line, file=out)

    pending = ""
    source = iter(lines)
    while True:
        out.write(prompt(manager))
        out.flush()
        try:
            raw = next(source)
        except StopIteration:
            break
        line = raw.rstrip("\n").lstrip(" \t")
        if not line:
            continue
        if line in _EXIT_COMMANDS:
            print(_GOODBYE, file=out)
            break
        if line == "clear":
            pending = ""
            continue
        pending += line
        if not pending.endswith(";"):
            pending += " "
            continue
        result = parser.execute(pending[:-1])
        print(result.message, file=out)
        pending = ""


def _build_arg_parser() -> argparse.ArgumentParser:
    arg_parser = argparse.ArgumentParser(
        prog="minidb", description="A small file-backed SQL database shell."
    )
    arg_parser.add_argument(
        "--data-dir",
        default="data",
        help="directory holding the databases (default: ./data)",
    )
    return arg_parser


def main(argv: Optional[List[str]] = None) -> int:
    """Start the shell on standard input; return the exit status."""
    args = _build_arg_parser().parse_args(argv)
    manager = DBManager(args.data_dir)

    try:
        manager.init_data_directory()
    except OSError as error:
        print(f"初始化数据目录失败: {error}", file=sys.stderr)
        print("无法初始化数据目录，程序退出", file=sys.stderr)
        return 1

    try:
        manager.load_databases()
    except (OSError, ValueError) as error:
        print(f"加载数据库失败: {error}", file=sys.stderr)
        print("加载数据库失败，程序退出", file=sys.stderr)
        return 1

    try:
        run(manager, sys.stdin, sys.stdout)
    finally:
        manager.save_all()
    return 0


if __name__ == "__main__":
    sys.exit(main())