"""
Package entry point.

Allows running the application via:

    python -m myplanner

This simply forwards execution to myplanner.cli.main().
"""

from myplanner.cli import main

if __name__ == "__main__":
    main()
