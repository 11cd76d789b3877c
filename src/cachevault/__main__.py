"""Entry point for ``python -m cachevault``."""

from cachevault.cli.typer_app import app

if __name__ == "__main__":
    app(prog_name="cachevault")
