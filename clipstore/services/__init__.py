"""Record store and upload pipeline services."""
