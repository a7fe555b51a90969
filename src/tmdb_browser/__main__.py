"""Allow ``python -m tmdb_browser``."""

import sys

from tmdb_browser.app import main

if __name__ == "__main__":
    sys.exit(main())
