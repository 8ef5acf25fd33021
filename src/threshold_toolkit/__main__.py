"""Allow `python -m threshold_toolkit`."""

from threshold_toolkit.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
