"""Script entry point delegating to the Typer-powered CLI."""

from __future__ import annotations

from typing import Iterable

from ossgames.cli.main import app


def main(argv: Iterable[str] | None = None) -> int:
    """Run the CLI and return its exit code instead of exiting."""

    args = list(argv) if argv is not None else None
    try:
        return app(prog_name="ossgames", args=args, standalone_mode=False) or 0
    except SystemExit as exc:
        if exc.code is None:
            return 0
        return exc.code if isinstance(exc.code, int) else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
