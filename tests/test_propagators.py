"""Tests for the sentry-trace, tracestate and W3C header codecs."""

import base64
import json
import logging

import pytest

from tracegate.config import TracingOptions
from tracegate.context.propagators import (
    compute_tracestate_value,
    decode_tracestate_value,
    extract_traceparent_data,
    extract_transaction_context,
    extract_w3c_traceparent,
    format_sentry_trace,
    inject_trace_headers,
    parse_tracestate,
)
from tracegate.errors import TracegateError, TracestateEncodingError
from tracegate.tracer import TraceparentData, TracestateData, Transaction, TransactionContext

TRACE_ID = "4bf92f3577b34da6a3ce929d0e0e4736"
SPAN_ID = "00f067aa0ba902b7"
PUBLIC_KEY = "dogsarebadatkeepingsecrets"


def _b64_json(value):
    padded = value + "=" * (-len(value) % 4)
    return json.loads(base64.b64decode(padded).decode("utf-8"))


class TestExtractTraceparentData:
    def test_full_header_with_surrounding_whitespace(self):
        data = extract_traceparent_data(f"  {TRACE_ID}-{SPAN_ID}-1  ")
        assert data == TraceparentData(trace_id=TRACE_ID, parent_span_id=SPAN_ID, parent_sampled=True)

    @pytest.mark.parametrize("flag, expected", [("1", True), ("0", False)])
    def test_sampled_flag(self, flag, expected):
        data = extract_traceparent_data(f"{TRACE_ID}-{SPAN_ID}-{flag}")
        assert data.trace_id == TRACE_ID
        assert data.parent_span_id == SPAN_ID
        assert data.parent_sampled is expected

    def test_missing_flag_leaves_decision_undecided(self):
        data = extract_traceparent_data(f"{TRACE_ID}-{SPAN_ID}")
        assert data.parent_sampled is None

    def test_tabs_allowed(self):
        assert extract_traceparent_data(f"\t{TRACE_ID}-{SPAN_ID}-0\t") is not None

    def test_trace_id_only(self):
        assert extract_traceparent_data(TRACE_ID) == TraceparentData(trace_id=TRACE_ID)

    def test_flag_only(self):
        assert extract_traceparent_data("1") == TraceparentData(parent_sampled=True)

    @pytest.mark.parametrize(
        "header",
        [
            "not-a-valid-header",
            f"{TRACE_ID[:-1]}-{SPAN_ID}-1",  # trace id too short
            f"{TRACE_ID}a-{SPAN_ID}-1",  # trace id too long
            f"{TRACE_ID}-{SPAN_ID[:-1]}-1",  # span id too short
            f"{TRACE_ID.upper()}-{SPAN_ID}-1",
            f"{TRACE_ID}-{SPAN_ID}-2",
            f"{TRACE_ID}-{SPAN_ID}-1-extra",
            f"{TRACE_ID}--{SPAN_ID}-1",
            f"{TRACE_ID}-{SPAN_ID}--1",
            f"{TRACE_ID}-{SPAN_ID}-1\n",
            f"00-{TRACE_ID}-{SPAN_ID}-01",  # W3C traceparent is not a sentry-trace value
        ],
    )
    def test_malformed_headers_yield_nothing(self, header):
        assert extract_traceparent_data(header) is None

    @pytest.mark.parametrize("header", [None, 123, b"abc"])
    def test_non_string_yields_nothing(self, header):
        assert extract_traceparent_data(header) is None

    def test_malformed_header_is_not_logged(self, caplog):
        extract_traceparent_data("not-a-valid-header")
        assert caplog.records == []


class TestFormatSentryTrace:
    def test_sampled(self):
        assert format_sentry_trace(TRACE_ID, SPAN_ID, True) == f"{TRACE_ID}-{SPAN_ID}-1"

    def test_not_sampled(self):
        assert format_sentry_trace(TRACE_ID, SPAN_ID, False) == f"{TRACE_ID}-{SPAN_ID}-0"

    def test_undecided(self):
        assert format_sentry_trace(TRACE_ID, SPAN_ID) == f"{TRACE_ID}-{SPAN_ID}"

    def test_parses_back(self):
        header = format_sentry_trace(TRACE_ID, SPAN_ID, False)
        assert extract_traceparent_data(header) == TraceparentData(TRACE_ID, SPAN_ID, False)


class TestComputeTracestateValue:
    def test_missing_environment_and_release_become_null(self):
        value = compute_tracestate_value(TracestateData(trace_id=TRACE_ID, public_key=PUBLIC_KEY))
        assert _b64_json(value) == {
            "trace_id": TRACE_ID,
            "public_key": PUBLIC_KEY,
            "environment": None,
            "release": None,
        }

    def test_empty_strings_become_null(self):
        value = compute_tracestate_value(
            {"trace_id": TRACE_ID, "environment": "", "release": "", "public_key": PUBLIC_KEY}
        )
        decoded = _b64_json(value)
        assert decoded["environment"] is None
        assert decoded["release"] is None

    def test_mapping_without_optional_keys(self):
        decoded = _b64_json(compute_tracestate_value({"trace_id": TRACE_ID, "public_key": PUBLIC_KEY}))
        assert "environment" in decoded and decoded["environment"] is None
        assert "release" in decoded and decoded["release"] is None

    def test_values_kept(self):
        data = TracestateData(trace_id=TRACE_ID, public_key=PUBLIC_KEY, environment="dogpark", release="off.leash.park")
        decoded = _b64_json(compute_tracestate_value(data))
        assert decoded["environment"] == "dogpark"
        assert decoded["release"] == "off.leash.park"

    def test_does_not_mutate_input(self):
        data = {"trace_id": TRACE_ID, "public_key": PUBLIC_KEY, "environment": ""}
        compute_tracestate_value(data)
        assert data == {"trace_id": TRACE_ID, "public_key": PUBLIC_KEY, "environment": ""}

    def test_unicode_round_trips(self):
        data = TracestateData(trace_id=TRACE_ID, public_key=PUBLIC_KEY, environment="prod ☃", release="café-1.0")
        decoded = _b64_json(compute_tracestate_value(data))
        assert decoded["environment"] == "prod ☃"
        assert decoded["release"] == "café-1.0"

    @pytest.mark.parametrize("release", [None, "1", "12", "123", "1.0.0-rc1", "é"])
    def test_padding_stripped(self, release):
        value = compute_tracestate_value(TracestateData(trace_id=TRACE_ID, public_key=PUBLIC_KEY, release=release))
        assert not value.endswith("=")
        assert "=" not in value
        assert _b64_json(value)["release"] == (release or None)

    def test_serialization_failure_raises_encoding_error(self):
        with pytest.raises(TracestateEncodingError) as excinfo:
            compute_tracestate_value({"trace_id": TRACE_ID, "public_key": object()})
        assert isinstance(excinfo.value, TracegateError)
        assert isinstance(excinfo.value.__cause__, TypeError)
        assert "Error creating tracestate header" in str(excinfo.value)
        assert excinfo.value.details == {"cause": "TypeError"}

    def test_unencodable_text_raises_encoding_error(self):
        with pytest.raises(TracestateEncodingError):
            compute_tracestate_value(TracestateData(trace_id=TRACE_ID, public_key=PUBLIC_KEY, release="\ud800"))

    @pytest.mark.parametrize("data", [None, 42, "text", TracestateData])
    def test_unserializable_input_raises_encoding_error(self, data):
        with pytest.raises(TracestateEncodingError) as excinfo:
            compute_tracestate_value(data)
        assert isinstance(excinfo.value.__cause__, (TypeError, ValueError))

    def test_keys_in_wire_order(self):
        data = TracestateData(trace_id=TRACE_ID, public_key=PUBLIC_KEY, environment="prod", release="1.0")
        assert list(_b64_json(compute_tracestate_value(data))) == ["trace_id", "environment", "release", "public_key"]

    def test_mapping_keys_in_wire_order(self):
        value = compute_tracestate_value({"public_key": PUBLIC_KEY, "trace_id": TRACE_ID})
        text = base64.b64decode(value + "=" * (-len(value) % 4)).decode("utf-8")
        assert text == (
            f'{{"trace_id":"{TRACE_ID}","environment":null,"release":null,"public_key":"{PUBLIC_KEY}"}}'
        )


class TestDecodeTracestateValue:
    def test_decodes_unpadded_value(self):
        data = TracestateData(trace_id=TRACE_ID, public_key=PUBLIC_KEY, release="1.2")
        assert decode_tracestate_value(compute_tracestate_value(data))["release"] == "1.2"

    @pytest.mark.parametrize("value", ["", "!!!", "bm90IGpzb24", "WzEsMl0"])
    def test_invalid_values_yield_nothing(self, value):
        assert decode_tracestate_value(value) is None


class TestParseTracestate:
    def test_list_entries(self):
        assert parse_tracestate("sentry=abc, Other = x=y ,bad,=v") == {"sentry": "abc", "other": "x=y"}

    def test_empty(self):
        assert parse_tracestate("") == {}


class TestInjectTraceHeaders:
    def _transaction(self, sampled):
        return Transaction(TransactionContext(name="t", trace_id=TRACE_ID, span_id=SPAN_ID, sampled=sampled))

    def test_sampled_transaction(self):
        headers = {}
        inject_trace_headers(headers, self._transaction(True))
        assert headers["sentry-trace"] == f"{TRACE_ID}-{SPAN_ID}-1"
        assert headers["traceparent"] == f"00-{TRACE_ID}-{SPAN_ID}-01"
        assert "tracestate" not in headers

    def test_undecided_transaction(self):
        headers = {}
        inject_trace_headers(headers, self._transaction(None))
        assert headers["sentry-trace"] == f"{TRACE_ID}-{SPAN_ID}"
        assert headers["traceparent"] == f"00-{TRACE_ID}-{SPAN_ID}-00"

    def test_tracestate_from_options(self):
        options = TracingOptions(public_key=PUBLIC_KEY, environment="prod", release="1.0")
        headers = {}
        inject_trace_headers(headers, self._transaction(True), options)

        key, value = headers["tracestate"].split("=", 1)
        assert key == "sentry"
        assert decode_tracestate_value(value) == {
            "trace_id": TRACE_ID,
            "public_key": PUBLIC_KEY,
            "environment": "prod",
            "release": "1.0",
        }

    def test_no_tracestate_without_public_key(self):
        headers = {}
        inject_trace_headers(headers, self._transaction(True), TracingOptions(environment="prod"))
        assert "tracestate" not in headers

    def test_oversized_tracestate_left_out(self, caplog):
        options = TracingOptions(public_key=PUBLIC_KEY, environment="prod", release="r" * 200)
        headers = {}
        with caplog.at_level(logging.WARNING, logger="tracegate.context.propagators"):
            inject_trace_headers(headers, self._transaction(True), options)

        assert "tracestate" not in headers
        assert headers["sentry-trace"] == f"{TRACE_ID}-{SPAN_ID}-1"
        assert headers["traceparent"] == f"00-{TRACE_ID}-{SPAN_ID}-01"
        assert any("leaving out the tracestate header" in r.getMessage() for r in caplog.records)


class TestExtractTransactionContext:
    def test_sentry_trace_header(self):
        context = extract_transaction_context({"Sentry-Trace": f"{TRACE_ID}-{SPAN_ID}-0"}, name="GET /")
        assert context.name == "GET /"
        assert context.trace_id == TRACE_ID
        assert context.parent_span_id == SPAN_ID
        assert context.parent_sampled is False
        assert context.sampled is None

    def test_w3c_fallback(self):
        context = extract_transaction_context({"traceparent": f"00-{TRACE_ID}-{SPAN_ID}-01"})
        assert context.trace_id == TRACE_ID
        assert context.parent_span_id == SPAN_ID
        assert context.parent_sampled is True

    def test_malformed_sentry_trace_falls_back_to_w3c(self):
        headers = {"sentry-trace": "garbage", "Traceparent": f"00-{TRACE_ID}-{SPAN_ID}-00"}
        context = extract_transaction_context(headers)
        assert context.trace_id == TRACE_ID
        assert context.parent_sampled is False

    def test_no_usable_headers_starts_new_trace(self):
        context = extract_transaction_context({"sentry-trace": "garbage", "accept": "*/*"}, op="http.server")
        assert context.op == "http.server"
        assert context.trace_id is None
        assert context.parent_span_id is None
        assert context.parent_sampled is None

    def test_tracestate_kept_in_metadata(self):
        headers = {"sentry-trace": f"{TRACE_ID}-{SPAN_ID}-1", "tracestate": "other=1,sentry=abc"}
        context = extract_transaction_context(headers)
        assert context.metadata == {"tracestate": {"sentry": "abc"}}

    def test_extract_w3c_traceparent_invalid(self):
        assert extract_w3c_traceparent({"traceparent": "00-garbage"}) is None
