"""Projects module (pro) route tables."""
