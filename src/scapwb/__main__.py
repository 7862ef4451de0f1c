"""
Entry point for running scapwb as a module.

Usage:
    python -m scapwb [COMMAND] [OPTIONS]
"""

from scapwb.cli.main import app

if __name__ == "__main__":
    app()
