"""
Checkout payload codec.

Payment-provider metadata is a flat string→string map with a per-value size
cap and a cap on the number of keys, but a booking payload (with services,
feature lists, image URLs...) can be larger than one value. The payload is
serialized to canonical JSON and split across numbered keys:

    type        -> payload kind ("appointment" | "rental_listing")
    data_count  -> number of chunks
    data_0 ... data_N -> consecutive JSON slices

Chunk order is always recovered from the parsed integer suffix, never from a
string sort (which would put data_10 before data_2).
"""

import json
import logging
import re
from typing import Any, Optional

from ...config import METADATA_CHUNK_SIZE, METADATA_MAX_KEYS
from ...errors import DecodeError, PayloadTooLargeError

logger = logging.getLogger(__name__)

KIND_APPOINTMENT = "appointment"
KIND_RENTAL_LISTING = "rental_listing"
PAYLOAD_KINDS = (KIND_APPOINTMENT, KIND_RENTAL_LISTING)

TYPE_KEY = "type"
COUNT_KEY = "data_count"
CHUNK_PREFIX = "data_"
CHUNK_KEY_PATTERN = re.compile(r"^data_(\d+)$")

# Single-field payloads written before chunking was introduced
LEGACY_PAYLOAD_KEYS = ("booking_data", "listing_data")


def canonical_json(payload: dict) -> str:
    """
    Deterministic JSON form of a payload.

    ASCII-escaped so that chunk length in characters equals length in bytes.
    """
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def chunk_key(index: int) -> str:
    return f"{CHUNK_PREFIX}{index}"


def encode(
    payload: dict,
    kind: str = KIND_APPOINTMENT,
    chunk_size: Optional[int] = None,
    max_keys: Optional[int] = None,
    extra: Optional[dict[str, str]] = None,
) -> dict[str, str]:
    """
    Encode a payload into provider metadata.

    Args:
        payload: JSON-serializable payload (use model_dump(mode="json"))
        kind: Payload discriminator stored under "type"
        chunk_size: Max characters per chunk value
        max_keys: Max number of metadata keys the provider accepts
        extra: Additional plain keys to carry alongside the chunks

    Returns:
        Metadata map ready for the checkout session

    Raises:
        PayloadTooLargeError: If the chunks don't fit in the key budget
    """
    chunk_size = chunk_size or METADATA_CHUNK_SIZE
    max_keys = max_keys or METADATA_MAX_KEYS
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if kind not in PAYLOAD_KINDS:
        raise ValueError(f"Unknown payload kind: {kind}")

    serialized = canonical_json(payload)
    chunks = [serialized[i : i + chunk_size] for i in range(0, len(serialized), chunk_size)]
    if not chunks:
        chunks = [""]

    metadata: dict[str, str] = {}
    for key, value in (extra or {}).items():
        if CHUNK_KEY_PATTERN.match(key) or key in (TYPE_KEY, COUNT_KEY):
            raise ValueError(f"Reserved metadata key: {key}")
        metadata[key] = str(value)

    metadata[TYPE_KEY] = kind
    metadata[COUNT_KEY] = str(len(chunks))
    for index, chunk in enumerate(chunks):
        metadata[chunk_key(index)] = chunk

    if len(metadata) > max_keys:
        raise PayloadTooLargeError(
            f"Payload needs {len(metadata)} metadata keys, provider allows {max_keys}",
            details={"size": len(serialized), "chunks": len(chunks)},
        )

    logger.debug(f"📦 Encoded {kind} payload: {len(serialized)} chars in {len(chunks)} chunks")
    return metadata


def _chunk_entries(metadata: dict[str, Any]) -> list[tuple[int, str]]:
    entries = []
    for key, value in metadata.items():
        match = CHUNK_KEY_PATTERN.match(key)
        if match:
            entries.append((int(match.group(1)), value))
    entries.sort(key=lambda entry: entry[0])
    return entries


def _parse(serialized: str, source: str) -> dict:
    try:
        payload = json.loads(serialized)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Invalid payload format in {source}: {e}") from e
    if not isinstance(payload, dict):
        raise DecodeError(f"Payload in {source} is not an object")
    return payload


def decode(metadata: Optional[dict[str, Any]]) -> dict:
    """
    Reassemble a payload from provider metadata.

    Raises:
        DecodeError: If a chunk is missing, the count disagrees, or parsing fails.
            A partial payload is never returned.
    """
    metadata = metadata or {}
    entries = _chunk_entries(metadata)

    if not entries:
        # Fallback only when no chunked keys exist at all
        for legacy_key in LEGACY_PAYLOAD_KEYS:
            if metadata.get(legacy_key):
                logger.info(f"📦 Decoding legacy single-field payload from '{legacy_key}'")
                return _parse(metadata[legacy_key], legacy_key)
        raise DecodeError("No payload data found in session metadata")

    indexes = [index for index, _ in entries]
    expected = list(range(len(entries)))
    if indexes != expected:
        missing = sorted(set(range(indexes[-1] + 1)) - set(indexes))
        raise DecodeError(
            f"Missing metadata chunks: {', '.join(chunk_key(i) for i in missing)}",
            details={"found": len(entries), "missing": missing},
        )

    declared = metadata.get(COUNT_KEY)
    if declared is not None:
        try:
            declared_count = int(declared)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Invalid {COUNT_KEY}: {declared!r}") from e
        if declared_count != len(entries):
            raise DecodeError(
                f"Expected {declared_count} metadata chunks, found {len(entries)}",
                details={"declared": declared_count, "found": len(entries)},
            )

    for index, value in entries:
        if not isinstance(value, str):
            raise DecodeError(f"Metadata chunk {chunk_key(index)} is not a string")

    return _parse("".join(value for _, value in entries), "metadata chunks")


def payload_kind(metadata: Optional[dict[str, Any]]) -> str:
    """Payload discriminator; sessions without one predate rental listings"""
    kind = (metadata or {}).get(TYPE_KEY) or KIND_APPOINTMENT
    if kind not in PAYLOAD_KINDS:
        raise DecodeError(f"Unknown payload type: {kind}")
    return kind
