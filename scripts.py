#!/usr/bin/env python3
"""Development scripts for Ticketgate."""

import subprocess
import sys


def start():
    """Start the development server."""
    subprocess.run([
        "uvicorn",
        "ticketgate.main:app",
        "--host", "0.0.0.0",
        "--port", "3000",
        "--reload"
    ])


def test():
    """Run the test suite."""
    sys.exit(subprocess.run(["pytest", "tests/"]).returncode)


def seed():
    """Insert demo events into the configured database."""
    subprocess.run([sys.executable, "miscellaneous/seed_events.py"])


def lint():
    """Run formatting check and type checking."""
    subprocess.run(["black", "--check", "ticketgate/"])
    subprocess.run(["mypy", "ticketgate/"])


def format_code():
    """Format code with black."""
    subprocess.run(["black", "ticketgate/", "tests/"])


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts.py <command>")
        print("Commands: start, test, seed, lint, format-code")
        sys.exit(1)

    command = sys.argv[1].replace("-", "_")
    if hasattr(sys.modules[__name__], command):
        getattr(sys.modules[__name__], command)()
    else:
        print(f"Unknown command: {sys.argv[1]}")
        sys.exit(1)
