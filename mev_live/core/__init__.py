"""Core logic for MEV LIVE."""
from .decoders import DecodeError, PayloadLayout, decode_instruction_payload, decode_key
from .envelope import EnvelopeValidationError, normalize_envelope
from .rate_limiter import RateLimiter
from .lookup_table_cache import LookupTableCache, ResolutionFailure
from .account_resolver import AccountResolver
from .venues import VenueRegistry
from .instruction_classifier import InstructionClassifier
from .signer_aggregator import SignerAggregator

__all__ = [
    "DecodeError",
    "PayloadLayout",
    "decode_instruction_payload",
    "decode_key",
    "EnvelopeValidationError",
    "normalize_envelope",
    "RateLimiter",
    "LookupTableCache",
    "ResolutionFailure",
    "AccountResolver",
    "VenueRegistry",
    "InstructionClassifier",
    "SignerAggregator",
]
