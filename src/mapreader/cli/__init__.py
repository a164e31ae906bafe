"""Command-line interface for mapreader."""
