from __future__ import annotations

import threading

import pytest

from ItzoLauncher.core import (
    AddonRunError,
    CancellationToken,
    ConfigResolutionError,
    DecompressionError,
    InvalidChunkKey,
    NoFragments,
    NoSourceAvailable,
    SchemaError,
    TransportError,
)
from ItzoLauncher.core.flags import get_itzo_flags


class TestItzoFlags:
    def test_defaults_only(self):
        assert get_itzo_flags({}) == ["--v", "5"]

    def test_flags_are_sorted_and_prefix_stripped(self):
        config = {
            "itzoFlag-use-podman": "true",
            "itzoFlag-cluster": "prod",
            "awsCWAgentRegion": "us-east-1",
        }

        assert get_itzo_flags(config) == [
            "-cluster",
            "prod",
            "-use-podman",
            "true",
            "--v",
            "5",
        ]

    def test_configured_default_is_not_duplicated(self):
        assert get_itzo_flags({"itzoFlag--v": "2"}) == ["--v", "2"]

    def test_bare_prefix_is_ignored(self):
        assert get_itzo_flags({"itzoFlag": "x"}) == ["--v", "5"]


class TestErrors:
    @pytest.mark.parametrize(
        "exc",
        [
            NoSourceAvailable("nothing"),
            TransportError("boom", source="ec2-metadata-service"),
            DecompressionError("bad gzip"),
            InvalidChunkKey("bad", key="config-x"),
            NoFragments("empty"),
            SchemaError("not a mapping"),
        ],
    )
    def test_resolution_errors_share_a_base(self, exc):
        assert isinstance(exc, ConfigResolutionError)

    def test_no_source_available_records_tried_sources(self):
        exc = NoSourceAvailable("none", tried=["waagent", "gce-metadata-service"])

        assert exc.tried == ("waagent", "gce-metadata-service")

    def test_addon_run_error_lists_every_failure(self):
        exc = AddonRunError({"a": RuntimeError("one"), "b": ValueError("two")})

        assert set(exc.failures) == {"a", "b"}
        assert str(exc) == "2 addon(s) failed: a: one; b: two"


class TestCancellationToken:
    def test_wait_times_out_when_not_cancelled(self):
        assert CancellationToken().wait(0.01) is False

    def test_cancel_wakes_waiter(self):
        token = CancellationToken()
        woke = []

        waiter = threading.Thread(target=lambda: woke.append(token.wait(10.0)))
        waiter.start()
        token.cancel()
        waiter.join(timeout=2.0)

        assert woke == [True]
        assert token.is_cancelled()
