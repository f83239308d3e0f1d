"""serialping package: send a short message over a serial port and show the reply."""

from __future__ import annotations

__all__ = ["main"]


def main(argv=None) -> int:
    """Run the serialping command line tool."""

    from .cli import main as _cli_main

    return _cli_main(argv)
