"""Ticketgate: ticket inventory allocation and admission validation."""

__version__ = "1.0.0"
