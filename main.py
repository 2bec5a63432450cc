"""Main entry point for Ticketgate."""

from ticketgate.main import run

if __name__ == "__main__":
    run()
