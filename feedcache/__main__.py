"""Main entry point when executing feedcache as a package.

This allows running the package using python -m feedcache.
"""

from feedcache.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
