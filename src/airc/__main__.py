"""Entry point for ``python -m airc``."""

from airc import cli


if __name__ == "__main__":
    cli.main()
