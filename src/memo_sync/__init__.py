"""memo-sync: publish locally authored memo collections to a remote document store."""

__version__ = "0.1.0"
