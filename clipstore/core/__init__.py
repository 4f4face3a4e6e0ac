"""Configuration, logging, auth, persistence and storage plumbing."""
