"""Food Variant Studio: AI product-photography variants and recipe ideas."""

__version__ = "0.1.0"
