"""Tunable parameters for MEV LIVE.

Layout offsets and allow-lists describe the on-chain program as observed,
not guarantees. Change them here when the program changes its layout.
"""

# Lookup table cache
LOOKUP_TABLE_TTL_SECONDS: float = 300.0
LOOKUP_TABLE_SWEEP_SECONDS: float = 60.0
LOOKUP_TABLE_FETCH_TIMEOUT: float = 5.0

# RPC rate limiting (sliding 1-second window)
RPC_MAX_CALLS_PER_SECOND: int = 10
RATE_LIMIT_WINDOW_SECONDS: float = 1.0
RATE_LIMIT_POLL_SECONDS: float = 0.1
RPC_HTTP_TIMEOUT: float = 10.0

# Instruction account layout
PROLOGUE_ACCOUNTS: int = 7
PROLOGUE_ACCOUNTS_FLASHLOAN: int = 9

# Fee classification
TRANSFER_HOP_SLACK_LAMPORTS: int = 5000
FAILURE_LOG_MARKERS: tuple = (
    "no profitable arbitrage opportunity found",
    "no profitable opportunity found",
)

# Aggregation caps
TIP_SAMPLE_CAP: int = 100
RECENT_TRANSACTIONS_CAP: int = 10
TOP_N_DEFAULT: int = 10
SIGNER_SUMMARY_EVERY: int = 10

# Reporting
STATS_REPORT_INTERVAL: float = 60.0
LAMPORTS_PER_SOL: int = 1_000_000_000

# Files
SNAPSHOT_DIR: str = "signer-analysis/"
COMBINED_REPORT_NAME: str = "combined-report.json"
LOG_DIR: str = "logs/"
LOG_LEVEL_DEFAULT: str = "INTELLIGENCE_ONLY"
