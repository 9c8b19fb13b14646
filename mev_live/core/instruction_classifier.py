"""Instruction decoding and economic classification for MEV LIVE.

Classification is always partial-tolerant: a malformed payload, an
out-of-range account index or an unexpected account layout degrades the
affected field to None / UNDETERMINED and never aborts the transaction.
"""

import logging
from typing import Any, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ..config.known_addresses import (
    ASSOCIATED_TOKEN_PROGRAM,
    BASE_MINTS,
    FEE_COLLECTOR,
    MEV_PROGRAM_ID,
    SKIP_ADDRESSES,
    SYSTEM_PROGRAM,
    TIP_ADDRESSES,
    TOKEN_PROGRAM,
)
from ..config.names_loader import KnownNames
from ..config.thresholds import (
    FAILURE_LOG_MARKERS,
    PROLOGUE_ACCOUNTS,
    PROLOGUE_ACCOUNTS_FLASHLOAN,
    TRANSFER_HOP_SLACK_LAMPORTS,
)
from ..models.transactions import (
    BalanceDelta,
    ClassifiedTransaction,
    DecodedInstructionPayload,
    FeeCategory,
    RawInstruction,
    ResolvedAccount,
    TransactionEnvelope,
)
from .decoders import DEFAULT_LAYOUT, DecodeError, PayloadLayout, decode_instruction_payload
from .venues import VenueRegistry

logger = logging.getLogger(__name__)

TRANSFER_DIRECT = "direct"
TRANSFER_SEPARATE_ACCOUNT = "separate_account"


def balance_deltas(
    accounts: Sequence[ResolvedAccount],
    pre_balances: Sequence[int],
    post_balances: Sequence[int],
) -> List[BalanceDelta]:
    """Non-zero lamport changes, paired with resolved account addresses."""
    deltas: List[BalanceDelta] = []
    for position, (pre, post) in enumerate(zip(pre_balances, post_balances)):
        change = post - pre
        if change == 0:
            continue
        address = accounts[position].address if position < len(accounts) else None
        deltas.append(BalanceDelta(position=position, address=address, change=change))
    return deltas


def classify_fee(
    deltas: Iterable[BalanceDelta],
    signer: Optional[str],
    tip_addresses: FrozenSet[str] = TIP_ADDRESSES,
    hop_slack: int = TRANSFER_HOP_SLACK_LAMPORTS,
) -> Tuple[FeeCategory, int, Optional[str]]:
    """Classify the tip shape of a transaction.

    Returns:
        (category, amount_lamports, transfer_type). transfer_type is set for
        TYPE_B only: "separate_account" when the signer paid more than the
        tip plus slack (an intermediary hop), else "direct".
    """
    nonzero = [d for d in deltas if d.change != 0]
    if len(nonzero) == 1:
        return FeeCategory.TYPE_A, abs(nonzero[0].change), None

    tip = next(
        (d for d in nonzero if d.change > 0 and d.address in tip_addresses),
        None,
    )
    if tip is None:
        return FeeCategory.UNDETERMINED, 0, None

    signer_delta = next(
        (d for d in nonzero if d.address == signer and d.change < 0),
        None,
    )
    if signer_delta is not None and abs(signer_delta.change) > tip.change + hop_slack:
        transfer_type = TRANSFER_SEPARATE_ACCOUNT
    else:
        transfer_type = TRANSFER_DIRECT
    return FeeCategory.TYPE_B, tip.change, transfer_type


def has_failed(logs: Sequence[str], error: Any = None, markers: Sequence[str] = FAILURE_LOG_MARKERS) -> bool:
    """True on an on-chain error or a known failure marker in the logs."""
    if error:
        return True
    lowered = [marker.lower() for marker in markers]
    return any(marker in line.lower() for line in logs for marker in lowered)


def validate_prologue(accounts: Sequence[Optional[ResolvedAccount]]) -> bool:
    """Check the fixed leading accounts against their expected identities.

    Expected: signer wallet, base mint (SOL/USDC), fee collector, writable
    non-signer base account, token program, system program, associated
    token program.
    """
    if len(accounts) < PROLOGUE_ACCOUNTS or any(a is None for a in accounts[:PROLOGUE_ACCOUNTS]):
        return False
    wallet, base_mint, collector, base_account, token, system, ata = accounts[:PROLOGUE_ACCOUNTS]
    return (
        wallet.is_signer
        and base_mint.address in BASE_MINTS
        and collector.address == FEE_COLLECTOR
        and base_account.is_writable
        and not base_account.is_signer
        and token.address == TOKEN_PROGRAM
        and system.address == SYSTEM_PROGRAM
        and ata.address == ASSOCIATED_TOKEN_PROGRAM
    )


class InstructionClassifier:
    """Derives a ClassifiedTransaction from resolved accounts and instructions."""

    def __init__(
        self,
        program_id: str = MEV_PROGRAM_ID,
        tip_addresses: FrozenSet[str] = TIP_ADDRESSES,
        venues: Optional[VenueRegistry] = None,
        names: Optional[KnownNames] = None,
        layout: PayloadLayout = DEFAULT_LAYOUT,
        skip_addresses: FrozenSet[str] = SKIP_ADDRESSES,
        failure_markers: Sequence[str] = FAILURE_LOG_MARKERS,
        hop_slack: int = TRANSFER_HOP_SLACK_LAMPORTS,
    ) -> None:
        self.program_id = program_id
        self.tip_addresses = frozenset(tip_addresses)
        self.venues = venues or VenueRegistry()
        self.names = names or KnownNames()
        self.layout = layout
        self.skip_addresses = frozenset(skip_addresses) | {program_id}
        self.failure_markers = tuple(failure_markers)
        self.hop_slack = hop_slack

    def classify_envelope(
        self,
        envelope: TransactionEnvelope,
        accounts: Sequence[ResolvedAccount],
    ) -> ClassifiedTransaction:
        deltas = balance_deltas(accounts, envelope.pre_balances, envelope.post_balances)
        return self.classify(
            accounts,
            envelope.instructions,
            deltas,
            envelope.log_messages,
            signature=envelope.signature,
            slot=envelope.slot,
            error=envelope.error,
            fee=envelope.fee,
            compute_units_consumed=envelope.compute_units_consumed,
        )

    def classify(
        self,
        accounts: Sequence[ResolvedAccount],
        instructions: Sequence[RawInstruction],
        deltas: Sequence[BalanceDelta],
        logs: Sequence[str],
        signature: str = "N/A",
        slot: int = 0,
        error: Any = None,
        fee: int = 0,
        compute_units_consumed: int = 0,
    ) -> ClassifiedTransaction:
        signer = accounts[0].address if accounts else None
        result = ClassifiedTransaction(
            signature=signature,
            slot=slot,
            signer=signer,
            failed=has_failed(logs, error, self.failure_markers),
            fee=fee,
            compute_units_consumed=compute_units_consumed,
        )

        instruction = self.find_target_instruction(accounts, instructions)
        if instruction is None:
            logger.debug("No %s instruction in %s", self.program_id[:8], signature)
            return result

        category, amount, transfer_type = classify_fee(
            deltas, signer, self.tip_addresses, self.hop_slack
        )
        result.fee_category = category
        result.fee_amount_lamports = amount
        result.transfer_type = transfer_type

        ix_accounts = [
            accounts[i] if 0 <= i < len(accounts) else None for i in instruction.accounts
        ]
        ix_addresses = [a.address if a is not None else None for a in ix_accounts]

        payload = self._decode_payload(instruction.data, signature)
        result.payload = payload
        result.prologue_ok = validate_prologue(ix_accounts)
        if not result.prologue_ok:
            logger.debug("Unexpected prologue layout in %s", signature)

        prologue = self.prologue_length(payload)
        if payload is not None:
            result.traded_asset = self.traded_asset(ix_addresses, prologue)
            if result.traded_asset:
                result.traded_asset_name = self.names.name_for(result.traded_asset)
        result.venues = self.venues.extract(ix_addresses, prologue + 1)
        return result

    def find_target_instruction(
        self,
        accounts: Sequence[ResolvedAccount],
        instructions: Sequence[RawInstruction],
    ) -> Optional[RawInstruction]:
        """First top-level instruction whose program id is the monitored program."""
        for ix in instructions:
            if 0 <= ix.program_id_index < len(accounts):
                if accounts[ix.program_id_index].address == self.program_id:
                    return ix
        return None

    def _decode_payload(self, data: bytes, signature: str) -> Optional[DecodedInstructionPayload]:
        try:
            return decode_instruction_payload(data, self.layout)
        except DecodeError as exc:
            logger.debug("Payload of %s not decoded (%s): %s", signature, exc.reason, exc)
            return None

    @staticmethod
    def prologue_length(payload: Optional[DecodedInstructionPayload]) -> int:
        if payload is not None and payload.use_flashloan:
            return PROLOGUE_ACCOUNTS_FLASHLOAN
        return PROLOGUE_ACCOUNTS

    def traded_asset(self, ix_addresses: Sequence[Optional[str]], position: int) -> Optional[str]:
        """Account at the traded-asset position, unless it is a program or skip-listed."""
        if position >= len(ix_addresses):
            return None
        address = ix_addresses[position]
        if address is None:
            return None
        if (
            address in self.skip_addresses
            or address in self.venues
            or self.names.is_known_program(address)
        ):
            return None
        return address
