"""Main entry point when executing pocketcache as a package.

This allows running the package using python -m pocketcache.
"""

from pocketcache.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
