"""Tests for request id acceptance."""

from wanderlist.middleware.request_id import resolve_request_id


class TestResolveRequestId:
    def test_keeps_well_formed_id(self):
        assert resolve_request_id("web-1f2e:42") == "web-1f2e:42"

    def test_generates_when_missing(self):
        first, second = resolve_request_id(None), resolve_request_id("")
        assert len(first) == 32
        assert first != second

    def test_rejects_overlong_id(self):
        assert resolve_request_id("x" * 65) != "x" * 65
