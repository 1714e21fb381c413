"""Unit tests for the Kinesis batch decoder."""

from __future__ import annotations

import base64
import gzip
import zlib

import orjson
import pytest

from hecrelay.core.decoder import (
    BatchDecoder,
    decode_payload,
    encode_payload,
    extract_log_events,
)
from hecrelay.core.errors import DecodeError, ErrorCategory
from hecrelay.core.events import LogEnvelope
from hecrelay.testing import (
    make_kinesis_event,
    make_kinesis_record,
    make_log_envelope,
    make_log_events,
)


def _gzip_b64(raw: bytes) -> str:
    return base64.b64encode(gzip.compress(raw)).decode("ascii")


class TestDecodePayload:
    def test_decodes_data_message(self) -> None:
        item = {"id": "1", "timestamp": 1690000000000, "message": "m"}
        data = encode_payload(make_log_envelope([item]))

        envelope = decode_payload(data)

        assert envelope.is_data_message
        assert envelope.log_group == "/aws/lambda/sample"
        assert envelope.log_events == [item]

    def test_extra_log_event_fields_pass_through(self) -> None:
        item = {
            "timestamp": 1690000000000,
            "message": "m",
            "extractedFields": {"status": "200"},
        }
        envelope = decode_payload(encode_payload(make_log_envelope([item])))

        assert extract_log_events(envelope) == [item]

    def test_accepts_bytes_input(self) -> None:
        data = encode_payload(make_log_envelope(make_log_events(["a"])))
        envelope = decode_payload(data.encode("ascii"))
        assert len(envelope.log_events or []) == 1

    def test_invalid_base64(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            decode_payload("not base64!!", record_index=3)
        assert exc_info.value.record_index == 3
        assert exc_info.value.context.category == ErrorCategory.DECODE

    def test_payload_not_gzip(self) -> None:
        data = base64.b64encode(b'{"messageType": "DATA_MESSAGE"}').decode()
        with pytest.raises(DecodeError) as exc_info:
            decode_payload(data)
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_truncated_gzip_stream(self) -> None:
        blob = gzip.compress(b'{"messageType": "DATA_MESSAGE"}')[:-6]
        with pytest.raises(DecodeError) as exc_info:
            decode_payload(base64.b64encode(blob).decode())
        assert isinstance(exc_info.value.__cause__, (EOFError, OSError, zlib.error))

    def test_payload_not_json(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            decode_payload(_gzip_b64(b"this is not json"))
        assert isinstance(exc_info.value.__cause__, orjson.JSONDecodeError)

    def test_payload_not_object(self) -> None:
        with pytest.raises(DecodeError, match="JSON object"):
            decode_payload(_gzip_b64(b"[1, 2, 3]"))

    def test_log_events_must_be_objects(self) -> None:
        raw = orjson.dumps({"messageType": "DATA_MESSAGE", "logEvents": [1, 2]})
        with pytest.raises(DecodeError, match="envelope shape"):
            decode_payload(_gzip_b64(raw))

    def test_line_wrapped_base64(self) -> None:
        encoded = encode_payload(make_log_envelope(make_log_events(["wrapped"])))
        wrapped = "\n".join(encoded[i : i + 76] for i in range(0, len(encoded), 76))
        assert "\n" in wrapped

        envelope = decode_payload(wrapped + "\n")

        assert [e["message"] for e in extract_log_events(envelope)] == ["wrapped"]

    def test_line_wrapped_base64_bytes(self) -> None:
        blob = gzip.compress(orjson.dumps(make_log_envelope(make_log_events(["b"]))))
        envelope = decode_payload(base64.encodebytes(blob))
        assert len(envelope.log_events or []) == 1

    def test_unexpected_metadata_types_are_carried(self) -> None:
        raw = orjson.dumps(
            {
                "messageType": "DATA_MESSAGE",
                "owner": 123456789012,
                "logGroup": ["/g"],
                "logStream": None,
                "subscriptionFilters": "hecrelay",
                "logEvents": [{"timestamp": 1, "message": "kept"}],
            }
        )
        envelope = decode_payload(_gzip_b64(raw))

        assert envelope.owner == 123456789012
        assert extract_log_events(envelope) == [{"timestamp": 1, "message": "kept"}]

    def test_non_data_message_is_never_an_error(self) -> None:
        raw = orjson.dumps(
            {"messageType": 7, "owner": {"id": 1}, "logEvents": ["a", 2]}
        )
        envelope = decode_payload(_gzip_b64(raw))

        assert not envelope.is_data_message
        assert extract_log_events(envelope) == []

    def test_integers_within_64_bits_pass_through(self) -> None:
        item = {"timestamp": 1, "message": "m", "id": 2**64 - 1, "low": -(2**63)}
        envelope = decode_payload(encode_payload(make_log_envelope([item])))
        assert extract_log_events(envelope) == [item]

    def test_wider_integers_become_floats(self) -> None:
        raw = (
            b'{"messageType": "DATA_MESSAGE", "logEvents": '
            b'[{"timestamp": 1, "message": "m", '
            b'"id": 123456789012345678901234567890}]}'
        )
        (item,) = extract_log_events(decode_payload(_gzip_b64(raw)))
        assert isinstance(item["id"], float)
        assert item["id"] == pytest.approx(1.2345678901234568e29)


class TestExtractLogEvents:
    def test_control_message_yields_nothing(self) -> None:
        envelope = LogEnvelope.model_validate(
            {"messageType": "CONTROL_MESSAGE", "logEvents": [{"message": "x"}]}
        )
        assert extract_log_events(envelope) == []

    def test_missing_log_events_yields_nothing(self) -> None:
        envelope = LogEnvelope.model_validate({"messageType": "DATA_MESSAGE"})
        assert extract_log_events(envelope) == []

    def test_empty_log_events_yields_nothing(self) -> None:
        envelope = LogEnvelope.model_validate(
            {"messageType": "DATA_MESSAGE", "logEvents": []}
        )
        assert extract_log_events(envelope) == []

    def test_missing_message_type_yields_nothing(self) -> None:
        envelope = LogEnvelope.model_validate({"logEvents": [{"message": "x"}]})
        assert extract_log_events(envelope) == []


class TestBatchDecoder:
    def _batch(self) -> dict:
        return make_kinesis_event(
            make_log_envelope(make_log_events(["a"])),
            make_log_envelope(make_log_events(["b", "c"])),
            make_log_envelope(make_log_events(["d", "e", "f"])),
        )

    def test_all_strategy_decodes_every_record_in_order(self) -> None:
        decoded = BatchDecoder().decode(self._batch())

        assert decoded.records_total == 3
        assert decoded.records_decoded == 3
        assert [e["message"] for e in decoded.events] == ["a", "b", "c", "d", "e", "f"]

    def test_last_strategy_decodes_only_final_record(self) -> None:
        decoded = BatchDecoder(strategy="last").decode(self._batch())

        assert decoded.records_total == 3
        assert decoded.records_decoded == 1
        assert [e["message"] for e in decoded.events] == ["d", "e", "f"]

    def test_last_strategy_ignores_bad_earlier_records(self) -> None:
        event = {
            "Records": [
                make_kinesis_record(data="@@@", sequence=0),
                make_kinesis_record(
                    make_log_envelope(make_log_events(["ok"])), sequence=1
                ),
            ]
        }
        decoded = BatchDecoder(strategy="last").decode(event)
        assert [e["message"] for e in decoded.events] == ["ok"]

    def test_odd_control_record_does_not_abort_batch(self) -> None:
        event = make_kinesis_event(
            make_log_envelope(make_log_events(["good"])),
            {"messageType": "CONTROL_MESSAGE", "owner": 123456789012},
        )
        decoded = BatchDecoder().decode(event)

        assert decoded.records_decoded == 2
        assert [e["message"] for e in decoded.events] == ["good"]

    def test_failure_aborts_whole_batch(self) -> None:
        event = {
            "Records": [
                make_kinesis_record(
                    make_log_envelope(make_log_events(["ok"])), sequence=0
                ),
                make_kinesis_record(data="@@@", sequence=1),
            ]
        }
        with pytest.raises(DecodeError) as exc_info:
            BatchDecoder().decode(event)
        assert exc_info.value.record_index == 1

    def test_non_data_records_count_as_decoded(self) -> None:
        event = make_kinesis_event(
            make_log_envelope(message_type="CONTROL_MESSAGE"),
            make_log_envelope(include_log_events=False),
        )
        decoded = BatchDecoder().decode(event)

        assert decoded.records_decoded == 2
        assert decoded.events == []

    def test_empty_batch(self) -> None:
        for strategy in ("all", "last"):
            decoded = BatchDecoder(strategy=strategy).decode({"Records": []})
            assert decoded.records_total == 0
            assert decoded.events == []

    def test_event_without_records_is_rejected(self) -> None:
        with pytest.raises(DecodeError, match="not a Kinesis batch"):
            BatchDecoder().decode({"foo": "bar"})

    def test_record_without_data_is_rejected(self) -> None:
        with pytest.raises(DecodeError):
            BatchDecoder().decode({"Records": [{"kinesis": {}}]})

    def test_unknown_strategy(self) -> None:
        with pytest.raises(ValueError):
            BatchDecoder(strategy="first")  # type: ignore[arg-type]

    def test_debug_diagnostic_for_empty_record(
        self, captured_diagnostics: list[dict]
    ) -> None:
        BatchDecoder().decode(
            make_kinesis_event(make_log_envelope(message_type="CONTROL_MESSAGE"))
        )
        assert any(
            d["component"] == "decoder"
            and d["message_type"] == "CONTROL_MESSAGE"
            for d in captured_diagnostics
        )
