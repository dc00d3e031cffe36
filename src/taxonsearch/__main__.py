"""taxonsearch main entry point.

Allows running the package as a script with ``python -m taxonsearch``.
"""

from taxonsearch.cli import main

if __name__ == "__main__":
    exit(main())
