"""Command-line interface for Food Variant Studio."""
