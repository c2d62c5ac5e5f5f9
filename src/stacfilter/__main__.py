"""Allow running the CLI with ``python -m stacfilter``."""

from stacfilter.cli import main


if __name__ == "__main__":
    main()
