"""
Main entry point for the panelapp-snapshot CLI application.
"""

from .cli import app

if __name__ == "__main__":
    app()
