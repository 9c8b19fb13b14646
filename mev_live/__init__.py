"""MEV LIVE - real-time signer and asset statistics for one on-chain program."""

__version__ = "0.1.0"
