"""Module entrypoint for ``python -m diffwatch``.

All argument parsing and runtime setup happen in ``diffwatch.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
