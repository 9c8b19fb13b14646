"""Venue account layouts for MEV LIVE.

Each venue family locates its pool account relative to where the venue's
program id appears in the monitored instruction's account list. Offsets
are observations of current program layouts; a change in one family is
made in that family's layout class only.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from ..config.known_addresses import VENUE_PROGRAMS
from ..models.transactions import Venue


class VenueLayout:
    """Locates a venue's pool account from the program id position."""

    family = "generic"
    pool_offset: Optional[int] = None

    def locate_pool(self, accounts: Sequence[Optional[str]], program_pos: int) -> Optional[str]:
        if self.pool_offset is None:
            return None
        pos = program_pos + self.pool_offset
        if pos >= len(accounts):
            return None
        return accounts[pos]


class RaydiumLayout(VenueLayout):
    """Raydium v4 / CPMM / CLMM: pool two accounts after the program."""

    family = "raydium"
    pool_offset = 2


class MeteoraLayout(VenueLayout):
    """Meteora DLMM / dynamic pools: pool two accounts after the program."""

    family = "meteora"
    pool_offset = 2


class WhirlpoolLayout(VenueLayout):
    """Orca Whirlpool: pool directly after the program."""

    family = "orca"
    pool_offset = 1


class PumpFunLayout(VenueLayout):
    """Pump.fun: bonding curve four accounts after the program."""

    family = "pumpfun"
    pool_offset = 4


_LAYOUTS_BY_NAME: Dict[str, VenueLayout] = {
    "Raydium v4": RaydiumLayout(),
    "Raydium CPMM": RaydiumLayout(),
    "Raydium CLMM": RaydiumLayout(),
    "Raydium CLMM v2": RaydiumLayout(),
    "Meteora DLMM": MeteoraLayout(),
    "Meteora Dynamic Pool": MeteoraLayout(),
    "Orca Whirlpool": WhirlpoolLayout(),
    "Pump.fun": PumpFunLayout(),
}


class VenueRegistry:
    """Program id -> (venue name, layout)."""

    def __init__(
        self,
        programs: Optional[Dict[str, str]] = None,
        layouts: Optional[Dict[str, VenueLayout]] = None,
    ) -> None:
        self.programs = dict(VENUE_PROGRAMS if programs is None else programs)
        self.layouts = dict(_LAYOUTS_BY_NAME if layouts is None else layouts)

    def __contains__(self, program_id: object) -> bool:
        return program_id in self.programs

    def lookup(self, program_id: str) -> Optional[Tuple[str, VenueLayout]]:
        name = self.programs.get(program_id)
        if name is None:
            return None
        return name, self.layouts.get(name, VenueLayout())

    def extract(self, accounts: Sequence[Optional[str]], start: int) -> List[Venue]:
        """Venues referenced at or after start, deduplicated by (name, pool)."""
        venues: List[Venue] = []
        seen = set()
        for pos in range(max(start, 0), len(accounts)):
            address = accounts[pos]
            if address is None:
                continue
            found = self.lookup(address)
            if found is None:
                continue
            name, layout = found
            venue = Venue(name=name, program_id=address, pool_address=layout.locate_pool(accounts, pos))
            if (venue.name, venue.pool_address) in seen:
                continue
            seen.add((venue.name, venue.pool_address))
            venues.append(venue)
        return venues
