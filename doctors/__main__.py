"""Entry point for ``python -m doctors``."""

from .cli import main

if __name__ == "__main__":
    main()
