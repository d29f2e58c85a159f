"""Treasury Watch — ingest ERC-20 transfers into the Axie treasury."""

__version__ = "0.1.0"
