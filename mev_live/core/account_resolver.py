"""Account resolution for MEV LIVE.

Builds the full, position-indexed account list of a transaction: static
message keys first, then addresses loaded through lookup tables, all
writable loads before all read-only loads. Every position from 0 to N-1
appears exactly once; accounts that cannot be resolved are kept as
placeholders so instruction account indexes stay valid.
"""

import logging
from typing import Dict, List, Optional, Sequence

from ..models.transactions import (
    AccountOrigin,
    LoadedAddresses,
    MessageHeader,
    ResolvedAccount,
    TableLookup,
    TransactionEnvelope,
)
from .lookup_table_cache import Addresses, LookupTableCache

logger = logging.getLogger(__name__)


def static_account_flags(index: int, total: int, header: MessageHeader) -> tuple:
    """(is_signer, is_writable) for a static key from the message header counts."""
    signers = header.num_required_signatures
    is_signer = index < signers
    if is_signer:
        is_writable = index < signers - header.num_readonly_signed_accounts
    else:
        is_writable = index < total - header.num_readonly_unsigned_accounts
    return is_signer, is_writable


class AccountResolver:
    """Merges static keys with lookup-table loaded addresses.

    Args:
        cache: Lookup table cache used when the envelope does not carry
               pre-resolved loaded addresses. None disables table fetches.
    """

    def __init__(self, cache: Optional[LookupTableCache] = None) -> None:
        self.cache = cache

    def resolve_envelope(self, envelope: TransactionEnvelope) -> List[ResolvedAccount]:
        return self.resolve(
            envelope.account_keys,
            envelope.header,
            envelope.table_lookups,
            envelope.loaded_addresses,
        )

    def resolve(
        self,
        static_keys: Sequence[Optional[str]],
        header: MessageHeader,
        table_lookups: Sequence[TableLookup] = (),
        loaded: Optional[LoadedAddresses] = None,
    ) -> List[ResolvedAccount]:
        """Resolve the ordered account list.

        Args:
            static_keys: Message account keys (None for undecodable keys).
            header: Message header signer/readonly counts.
            table_lookups: Lookup table references declared by the message.
            loaded: Pre-resolved loaded addresses from the envelope, if any.

        Returns:
            ResolvedAccount list with dense positions starting at 0.
        """
        accounts: List[ResolvedAccount] = []
        total = len(static_keys)
        for index, key in enumerate(static_keys):
            is_signer, is_writable = static_account_flags(index, total, header)
            accounts.append(
                ResolvedAccount(
                    position=index,
                    address=key,
                    is_signer=is_signer,
                    is_writable=is_writable,
                    origin=AccountOrigin.STATIC,
                )
            )

        if loaded is None and table_lookups and self.cache is not None:
            loaded = self._load_from_tables(table_lookups)

        if loaded is not None:
            self._append(accounts, loaded.writable, AccountOrigin.LOADED_WRITABLE)
            self._append(accounts, loaded.readonly, AccountOrigin.LOADED_READONLY)
        return accounts

    @staticmethod
    def _append(
        accounts: List[ResolvedAccount],
        addresses: Sequence[Optional[str]],
        origin: AccountOrigin,
    ) -> None:
        writable = origin is AccountOrigin.LOADED_WRITABLE
        for address in addresses:
            accounts.append(
                ResolvedAccount(
                    position=len(accounts),
                    address=address,
                    is_signer=False,
                    is_writable=writable,
                    origin=origin,
                )
            )

    def _load_from_tables(self, table_lookups: Sequence[TableLookup]) -> LoadedAddresses:
        """Project declared table indexes onto resolved table contents.

        Indexes of an unresolved table, or past the end of a resolved one,
        become None placeholders.
        """
        tables: Dict[str, Optional[Addresses]] = self.cache.resolve_many(
            lookup.table_address for lookup in table_lookups
        )
        loaded = LoadedAddresses()
        for lookup in table_lookups:
            table = tables.get(lookup.table_address)
            if table is None:
                logger.debug(
                    "Table %s unresolved, %d placeholder accounts",
                    lookup.table_address,
                    len(lookup.writable_indexes) + len(lookup.readonly_indexes),
                )
            loaded.writable.extend(_project(table, lookup.writable_indexes))
            loaded.readonly.extend(_project(table, lookup.readonly_indexes))
        return loaded


def _project(table: Optional[Addresses], indexes: Sequence[int]) -> List[Optional[str]]:
    if table is None:
        return [None] * len(indexes)
    return [table[i] if 0 <= i < len(table) else None for i in indexes]
