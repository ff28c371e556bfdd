"""
Entry point for running restarter via `python -m restarter`.
"""

from .cli import main

if __name__ == "__main__":
    main()
