"""Entry point for `python -m tabol`; the installed console script is `tabol`."""

from tabol.cli import app


def main() -> None:
    app()


if __name__ == "__main__":
    main()
