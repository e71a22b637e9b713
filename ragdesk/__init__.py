"""ragdesk: retrieval-augmented support-desk assistant."""

__version__ = "0.1.0"
