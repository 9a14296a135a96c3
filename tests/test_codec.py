import json

import pytest

from booking_api.domain.checkout import codec
from booking_api.errors import DecodeError, PayloadTooLargeError, ValidationError


def large_payload():
    return {
        "full_name": "Ada Lovelace",
        "services": [f"Service number {i} with a fairly long descriptive name" for i in range(40)],
        "description": "ü" * 300,
    }


class TestEncode:
    def test_payload_spanning_several_chunks_round_trips(self):
        payload = large_payload()
        metadata = codec.encode(payload, chunk_size=100)

        chunk_keys = [k for k in metadata if k.startswith("data_") and k != "data_count"]
        assert len(chunk_keys) > 10
        assert metadata["data_count"] == str(len(chunk_keys))
        assert metadata["type"] == codec.KIND_APPOINTMENT
        assert all(len(metadata[k]) <= 100 for k in chunk_keys)
        assert codec.decode(metadata) == payload

    def test_chunks_are_ascii(self):
        metadata = codec.encode({"name": "Zoë 🏠"}, chunk_size=5)
        assert all(v.isascii() for v in metadata.values())
        assert codec.decode(metadata) == {"name": "Zoë 🏠"}

    def test_encoding_is_deterministic(self):
        a = codec.encode({"b": 1, "a": [1, 2]})
        b = codec.encode({"a": [1, 2], "b": 1})
        assert a == b

    def test_rental_listing_kind(self):
        metadata = codec.encode({"title": "Flat"}, kind=codec.KIND_RENTAL_LISTING)
        assert codec.payload_kind(metadata) == codec.KIND_RENTAL_LISTING

    def test_too_many_keys_raises(self):
        with pytest.raises(PayloadTooLargeError) as exc_info:
            codec.encode(large_payload(), chunk_size=10, max_keys=50)
        assert isinstance(exc_info.value, ValidationError)

    def test_extra_keys_cannot_shadow_chunks(self):
        with pytest.raises(ValueError):
            codec.encode({"a": 1}, extra={"data_0": "x"})


class TestDecode:
    def test_orders_chunks_numerically(self):
        serialized = json.dumps({"value": "abcdefghijkl" * 3})
        pieces = [serialized[i : i + 4] for i in range(0, len(serialized), 4)]
        assert len(pieces) >= 12
        pieces = pieces[:11] + ["".join(pieces[11:])]

        # Insertion order deliberately scrambled; "data_10" sorts before "data_2" as text
        metadata = {f"data_{i}": pieces[i] for i in sorted(range(12), key=str)}
        metadata["type"] = "appointment"

        assert codec.decode(metadata) == {"value": "abcdefghijkl" * 3}

    def test_missing_chunk_raises(self):
        metadata = codec.encode(large_payload(), chunk_size=100)
        del metadata["data_3"]

        with pytest.raises(DecodeError, match="data_3"):
            codec.decode(metadata)

    def test_missing_trailing_chunk_detected_by_count(self):
        metadata = codec.encode(large_payload(), chunk_size=100)
        last = int(metadata["data_count"]) - 1
        del metadata[f"data_{last}"]

        with pytest.raises(DecodeError):
            codec.decode(metadata)

    def test_corrupt_json_raises(self):
        with pytest.raises(DecodeError):
            codec.decode({"data_0": '{"a": ', "data_1": "oops"})

    def test_legacy_single_field(self):
        assert codec.decode({"booking_data": '{"full_name": "Ada"}'}) == {"full_name": "Ada"}
        assert codec.decode({"listing_data": '{"title": "Flat"}'}) == {"title": "Flat"}

    def test_legacy_ignored_when_chunks_present(self):
        metadata = codec.encode({"new": True})
        metadata["booking_data"] = '{"old": true}'
        assert codec.decode(metadata) == {"new": True}

    def test_nothing_to_decode(self):
        with pytest.raises(DecodeError):
            codec.decode({"type": "appointment"})
        with pytest.raises(DecodeError):
            codec.decode(None)

    def test_payload_kind_defaults_to_appointment(self):
        assert codec.payload_kind({"booking_data": "{}"}) == codec.KIND_APPOINTMENT

    def test_unknown_payload_kind(self):
        with pytest.raises(DecodeError):
            codec.payload_kind({"type": "invoice"})
