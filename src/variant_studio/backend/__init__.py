"""HTTP API for Food Variant Studio."""
