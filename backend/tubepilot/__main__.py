"""CLI entry point for python -m tubepilot"""
from tubepilot.cli.commands import app

if __name__ == "__main__":
    app()
