"""
Main entry point for the gallery_cache package.

Allows running the CLI as: python -m gallery_cache
"""

from gallery_cache.cli import main

if __name__ == "__main__":
    main()
