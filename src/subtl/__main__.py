"""Fallback entrypoint for `python -m subtl`.

Routes to the subtl_cli Typer application.
"""

from subtl_cli.main import app

if __name__ == "__main__":
    app()
