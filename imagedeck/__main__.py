"""Module entrypoint for ``python -m imagedeck``.

Argument parsing and session setup happen in ``imagedeck.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
