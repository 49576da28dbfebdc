# SOAT/__main__.py
# Entry point for ``python -m SOAT``; same commands as the ``soat`` console script.
from .cli import cli

if __name__ == "__main__":
    cli()
