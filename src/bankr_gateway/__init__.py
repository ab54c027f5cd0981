"""Request/response gateway for the Bankr agent job API."""

__version__ = "0.1.0"
