"""Package entry point for ``python -m cuesynch``.

WHY: Users run the converter as ``python -m cuesynch convert log.csv``.
Python's ``-m`` flag looks for ``__main__.py`` inside the package and
executes it.

HOW: Delegates to the CLI's main() function.
"""

from cuesynch.cli import main

if __name__ == "__main__":
    main()
