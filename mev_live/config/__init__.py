"""Configuration for MEV LIVE."""
