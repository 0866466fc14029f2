"""Production module (prd) route tables."""
