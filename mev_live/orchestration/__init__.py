"""Event loop for MEV LIVE."""
