"""Module entrypoint for `python -m branchlet`."""

from __future__ import annotations

from .cli import app


def main() -> None:
    app(prog_name="branchlet")


if __name__ == "__main__":
    main()
