"""Run the restarter from a source checkout."""

from restarter.cli import main

if __name__ == "__main__":
    main()
