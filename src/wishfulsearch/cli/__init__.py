"""Command-line interface for WishfulSearch."""
