"""Entrypoint for `python -m redis_cleanup`."""

from .cli import main


if __name__ == "__main__":
    main()
