"""Entry point for running gpxlens as a module.

Usage:
    python -m gpxlens [command] [options]
"""

from gpxlens.cli import main

if __name__ == "__main__":
    main()
