"""Package entry point for ``python -m demo_narrator``.

WHY: Users run captures as ``python -m demo_narrator capture demo.yaml``.
Python's ``-m`` flag looks for ``__main__.py`` inside the package and
executes it.

HOW: Delegates straight to the CLI's main() function.
"""

from demo_narrator.cli import main

if __name__ == "__main__":
    main()
