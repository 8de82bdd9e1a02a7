"""CLI package for interacting with the Binlytics API."""
