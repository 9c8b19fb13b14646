"""Static address tables for MEV LIVE.

Loaded once at import and treated as immutable lookup data. Per-venue pool
offsets live with the venue layouts in core/venues.py.
"""

from typing import Dict, FrozenSet

# Program whose instructions are monitored
MEV_PROGRAM_ID = "MEViEnscUm6tsQRoGd9h6nLQaQspKj7DB2M5FwM3Xvz"

# Tip accounts; a positive transfer to any of these is a tip payment
TIP_ADDRESSES: FrozenSet[str] = frozenset({
    "96gYZGLnJYVFmbjzopPSU6QiEV5fGqZNyN9nmNhvrZU5",
    "HFqU5x63VTqvQss8hp11i4wVV8bD44PvwucfZ2bU7gRe",
    "Cw8CFyM9FkoMi7K7Crf6HNQqf4uEMzpKw6QNghXLvLkY",
    "ADaUMid9yfUytqMBgopwjb2DTLSokTSzL1zt6iGPaS49",
    "DfXygSm4jCyNCybVYYK6DwvWqjKee8pbDmJGcLWNDXjh",
    "ADuUkR4vqLUMWXxW9gh6D6L8pMSawimctcNZ5pGwDcEt",
    "DttWaMuVvTiduZRnguLF7jNxTgiMBZ1hyAumKUiL2KRL",
    "3AVi9Tg9Uo68tJfuvoKvqKNWKkC5wPdSSdeBnizKZ6jT",
})

# Swap venue program ids -> venue name
VENUE_PROGRAMS: Dict[str, str] = {
    "LBUZKhRxPF3XUpBCjp4YzTKgLccjZhTSDM9YuVaPwxo": "Meteora DLMM",
    "Eo7WjKq67rjJQSZxS6z3YkapzY3eMj6Xy8X5EQVn5UaB": "Meteora Dynamic Pool",
    "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8": "Raydium v4",
    "CAMMCzo5YL8w4VFF8KVHrK22GGUsp5VTaW7grrKgrWqK": "Raydium CLMM",
    "CPMMoo8L3F4NbTegBCKVNunggL7H1ZpdTHKxQB5qKP1C": "Raydium CPMM",
    "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1": "Raydium CLMM v2",
    "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc": "Orca Whirlpool",
    "6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P": "Pump.fun",
}

WSOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
FEE_COLLECTOR = "6AGB9kqg5XBBoUc4xC5v7NBTwmZN8xVbvDn5FW9eMX7C"
TOKEN_PROGRAM = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
SYSTEM_PROGRAM = "11111111111111111111111111111111"
ASSOCIATED_TOKEN_PROGRAM = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
COMPUTE_BUDGET_PROGRAM = "ComputeBudget111111111111111111111111111111"
FLASHLOAN_PROGRAM = "5LFpzqgsxrSfhKwbaFiAEJ2kbc9QyimjKueswsyU4T3o"

# Accounts that can never be the traded asset
SKIP_ADDRESSES: FrozenSet[str] = frozenset({
    FLASHLOAN_PROGRAM,
    TOKEN_PROGRAM,
    SYSTEM_PROGRAM,
    ASSOCIATED_TOKEN_PROGRAM,
    MEV_PROGRAM_ID,
    COMPUTE_BUDGET_PROGRAM,
})

BASE_MINTS: FrozenSet[str] = frozenset({WSOL_MINT, USDC_MINT})

KNOWN_PROGRAMS: Dict[str, str] = {
    MEV_PROGRAM_ID: "MEV Program",
    TOKEN_PROGRAM: "Token Program",
    SYSTEM_PROGRAM: "System Program",
    ASSOCIATED_TOKEN_PROGRAM: "Associated Token Program",
    COMPUTE_BUDGET_PROGRAM: "Compute Budget",
    FLASHLOAN_PROGRAM: "Flashloan Program",
    **VENUE_PROGRAMS,
}

KNOWN_TOKENS: Dict[str, str] = {
    WSOL_MINT: "Wrapped SOL",
    USDC_MINT: "USDC",
}
