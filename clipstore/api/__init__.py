"""HTTP surface for Clipstore."""
