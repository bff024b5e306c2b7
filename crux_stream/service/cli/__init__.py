"""crux-stream CLI (package entrypoint).

Wires argument parsing to the action handlers in ``cli_actions``; performs no
streaming logic directly.
"""

from __future__ import annotations

import sys
from typing import Optional

from .cli_actions import handle_chat
from .cli_parser import build_parser


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entrypoint.

    Parameters
    ----------
    argv: Optional[list[str]]
        Argument vector; when ``None`` uses ``sys.argv[1:]``.

    Returns
    -------
    int
        Process exit code (0 success, 1 errored, 130 cancelled, 2 usage).
    """
    p = build_parser()
    argv_list = list(sys.argv[1:] if argv is None else argv)
    # "chat" is the default subcommand.
    if argv_list and argv_list[0] not in {"chat", "-h", "--help"}:
        argv_list = ["chat"] + argv_list
    args = p.parse_args(argv_list)
    if args.cmd != "chat":
        p.print_help()
        return 2
    return handle_chat(args)


__all__ = ["main"]
