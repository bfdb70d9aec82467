"""Tests for tracking payload validation."""

from datetime import datetime, timezone

import pytest

from codepruner.common.exceptions import BatchValidationError
from codepruner.ingestion.validator import normalize_payload, validate_batch


RECEIVED = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def event(**overrides):
    item = {"method": "GET", "route": "/api/users/:id", "statusCode": 200}
    item.update(overrides)
    return item


class TestNormalizePayload:
    def test_object_becomes_batch_of_one(self):
        assert normalize_payload(event()) == [event()]

    def test_list_passthrough(self):
        items = [event(), event(route="/b")]
        assert normalize_payload(items) == items

    def test_empty_list_rejected(self):
        with pytest.raises(BatchValidationError) as exc:
            normalize_payload([])
        assert exc.value.index is None
        assert exc.value.field is None

    @pytest.mark.parametrize("payload", [None, "GET /a", 42])
    def test_non_object_rejected(self, payload):
        with pytest.raises(BatchValidationError):
            normalize_payload(payload)


class TestValidateBatch:
    def test_bare_object_equals_single_item_batch(self):
        single = validate_batch(event(), received_at=RECEIVED)
        batch = validate_batch([event()], received_at=RECEIVED)
        assert single == batch
        assert len(single) == 1

    def test_method_uppercased(self):
        [e] = validate_batch(event(method="patch"), received_at=RECEIVED)
        assert e.method == "PATCH"

    def test_defaults(self):
        [e] = validate_batch(event(), received_at=RECEIVED)
        assert e.timestamp == RECEIVED
        assert e.latency_ms == 0.0

    def test_timestamp_parsed_to_utc(self):
        [e] = validate_batch(
            event(timestamp="2026-02-01T10:00:00+02:00"), received_at=RECEIVED,
        )
        assert e.timestamp == datetime(2026, 2, 1, 8, 0, tzinfo=timezone.utc)

    def test_naive_timestamp_assumed_utc(self):
        [e] = validate_batch(event(timestamp="2026-02-01T10:00:00"))
        assert e.timestamp.tzinfo == timezone.utc

    def test_latency_aliases(self):
        a, b = validate_batch([event(latency=12.5), event(latencyMs=7)])
        assert a.latency_ms == 12.5
        assert b.latency_ms == 7.0

    def test_invalid_item_rejects_whole_batch(self):
        items = [event(), event(), event(statusCode=700), event()]
        with pytest.raises(BatchValidationError) as exc:
            validate_batch(items)
        assert exc.value.index == 2
        assert exc.value.field == "statusCode"
        assert exc.value.code == "INVALID_PAYLOAD"
        assert "Item 2" in exc.value.message

    def test_first_offending_item_reported(self):
        items = [event(), event(route=""), event(method="FETCH")]
        with pytest.raises(BatchValidationError) as exc:
            validate_batch(items)
        assert exc.value.index == 1
        assert exc.value.field == "route"

    @pytest.mark.parametrize("field", ["method", "route", "statusCode"])
    def test_missing_required_field(self, field):
        item = event()
        del item[field]
        with pytest.raises(BatchValidationError) as exc:
            validate_batch([item])
        assert exc.value.index == 0
        assert exc.value.field == field
        assert "Missing required field" in exc.value.message

    def test_unknown_method(self):
        with pytest.raises(BatchValidationError) as exc:
            validate_batch(event(method="CONNECT"))
        assert exc.value.field == "method"

    @pytest.mark.parametrize("status", [99, 600, "200", 200.5, True])
    def test_bad_status_code(self, status):
        with pytest.raises(BatchValidationError) as exc:
            validate_batch(event(statusCode=status))
        assert exc.value.field == "statusCode"

    @pytest.mark.parametrize("status", [100, 599])
    def test_status_code_bounds_inclusive(self, status):
        [e] = validate_batch(event(statusCode=status))
        assert e.status_code == status

    def test_bad_timestamp(self):
        with pytest.raises(BatchValidationError) as exc:
            validate_batch(event(timestamp="not-a-date"))
        assert exc.value.field == "timestamp"

    @pytest.mark.parametrize("latency", [-1, "fast", None])
    def test_bad_latency(self, latency):
        with pytest.raises(BatchValidationError) as exc:
            validate_batch(event(latency=latency))
        assert exc.value.field == "latency"

    def test_non_string_route(self):
        with pytest.raises(BatchValidationError) as exc:
            validate_batch(event(route=123))
        assert exc.value.field == "route"

    def test_item_not_an_object(self):
        with pytest.raises(BatchValidationError) as exc:
            validate_batch([event(), "oops"])
        assert exc.value.index == 1
        assert exc.value.field is None
