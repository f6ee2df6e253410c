"""
ALPHA INTEL — Pyth Oracle Result Decoder
Extracts the price field from a Clarity read-only call result.

Layout of the relevant slice of the hex-encoded result (no 0x prefix):

    ... | 05 70 72 69 63 65 | 01 | <16-byte big-endian uint> | ...
          len=5 "price"       uint type tag   price * 10^8

The tuple key is located by its marker; the type tag is skipped; the next
32 hex characters are the unsigned price scaled by 10^8.
"""
from alpha_intel.utils.errors import OracleDecodeError

PRICE_MARKER = "057072696365"
TYPE_TAG_HEX_CHARS = 2
PRICE_FIELD_HEX_CHARS = 32
PRICE_SCALE = 10 ** 8

# Clarity buffer argument: type 0x02 (buffer) + u32 length 0x20
FEED_ARGUMENT_PREFIX = "0x0200000020"


def encode_feed_argument(feed_id: str) -> str:
    """Serialize a 32-byte feed id as the Clarity buffer argument for get-price."""
    feed_hex = feed_id[2:] if feed_id.startswith("0x") else feed_id
    if len(feed_hex) != 64:
        raise ValueError(f"feed id must be 32 bytes, got {len(feed_hex) // 2}")
    return f"{FEED_ARGUMENT_PREFIX}{feed_hex}"


def decode_price(result_hex: str) -> float:
    """Decode the oracle price from a contract-call result hex string."""
    body = result_hex[2:] if result_hex.startswith("0x") else result_hex
    idx = body.find(PRICE_MARKER)
    if idx == -1:
        raise OracleDecodeError("Price marker not found in oracle result", source="pyth")

    start = idx + len(PRICE_MARKER) + TYPE_TAG_HEX_CHARS
    field = body[start:start + PRICE_FIELD_HEX_CHARS]
    if len(field) != PRICE_FIELD_HEX_CHARS:
        raise OracleDecodeError("Truncated price field in oracle result", source="pyth")

    try:
        raw = int(field, 16)
    except ValueError as e:
        raise OracleDecodeError(f"Invalid price field: {e}", source="pyth") from e

    return raw / PRICE_SCALE
