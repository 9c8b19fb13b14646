"""Text rendering for MEV LIVE summaries."""
from .summary import render_asset_table, render_signer_summary

__all__ = ["render_asset_table", "render_signer_summary"]
