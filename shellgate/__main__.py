"""Entry point for running shellgate as a module."""

from shellgate.cli.commands import app

if __name__ == "__main__":
    app()
