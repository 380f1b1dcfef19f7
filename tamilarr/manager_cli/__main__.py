"""``tamilarr`` console script and ``python -m tamilarr.manager_cli``."""
from __future__ import annotations

from .app import app


def main() -> None:
    app(prog_name="tamilarr")


if __name__ == "__main__":
    main()
