"""
User-data Resolution Tests

Covers:
- Race → fetch → decompress pipeline over scripted datasources
- Expected "nothing available" outcome vs. transport failures
- Launcher files written from user-data and the cell config read back
"""

from __future__ import annotations

import gzip
from pathlib import Path

import httpx
import pytest

from ItzoLauncher.CloudInit.datasources import WAAgentDatasource
from ItzoLauncher.CloudInit.resolution import (
    fetch_userdata,
    process_user_data,
    read_cell_config,
)
from ItzoLauncher.core.errors import (
    DecompressionError,
    NoSourceAvailable,
    SchemaError,
    TransportError,
)

FAST = {"initial_interval": 0.01, "max_interval": 0.02, "timeout": 0.2}


def _user_data(settings, foreign: Path) -> bytes:
    return (
        "#cloud-config\n"
        "write_files:\n"
        f"  - path: {settings.itzo_url_file}\n"
        "    content: http://example.com/itzo\n"
        f"  - path: {settings.cell_config_file}\n"
        "    content: |\n"
        "      itzoFlag-use-podman: true\n"
        "      awsCWAgentRegion: us-east-1\n"
        f"  - path: {foreign}\n"
        "    content: ignored\n"
    ).encode()


class TestFetchUserdata:
    def test_no_sources_configured(self):
        with pytest.raises(NoSourceAvailable):
            fetch_userdata([])

    def test_nothing_available_reports_tried_sources(self, fake_datasource):
        sources = [
            fake_datasource("a", available_after=None),
            fake_datasource("b", available_after=None),
        ]

        with pytest.raises(NoSourceAvailable) as excinfo:
            fetch_userdata(sources, **FAST)

        assert excinfo.value.tried == ("a", "b")

    def test_winner_payload_is_returned(self, fake_datasource):
        source = fake_datasource("waagent", payload=b"plain")

        assert fetch_userdata([source], **FAST) == b"plain"
        assert source.fetches == 1

    def test_gzip_payload_is_unwrapped(self, fake_datasource):
        source = fake_datasource("waagent", payload=gzip.compress(b"inner"))

        assert fetch_userdata([source], **FAST) == b"inner"

    def test_corrupt_gzip_payload_raises(self, fake_datasource):
        source = fake_datasource("waagent", payload=b"\x1f\x8bbroken")

        with pytest.raises(DecompressionError):
            fetch_userdata([source], **FAST)

    @pytest.mark.parametrize(
        "error",
        [httpx.ReadTimeout("timed out"), PermissionError("CustomData")],
    )
    def test_fetch_failure_is_a_transport_error(self, fake_datasource, error):
        source = fake_datasource("ec2-metadata-service", error=error)

        with pytest.raises(TransportError) as excinfo:
            fetch_userdata([source], **FAST)

        assert excinfo.value.source == "ec2-metadata-service"
        assert excinfo.value.__cause__ is error


class TestProcessUserData:
    def test_launcher_files_are_written(self, launcher_settings, fake_datasource, tmp_path):
        foreign = tmp_path / "etc" / "motd"
        source = fake_datasource("waagent", payload=_user_data(launcher_settings, foreign))

        written = process_user_data(launcher_settings, [source])

        assert written == [launcher_settings.itzo_url_file, launcher_settings.cell_config_file]
        assert launcher_settings.itzo_url_file.read_text() == "http://example.com/itzo"
        assert not foreign.exists()

    def test_default_datasources_share_a_client_closed_afterwards(self, launcher_settings, monkeypatch, tmp_path):
        root = launcher_settings.waagent_root
        root.mkdir(parents=True)
        (root / "provisioned").touch()
        (root / "CustomData").write_bytes(_user_data(launcher_settings, tmp_path / "motd"))
        clients = []

        def fake_default_datasources(settings, *, client):
            clients.append(client)
            return [WAAgentDatasource(settings.waagent_root)]

        monkeypatch.setattr(
            "ItzoLauncher.CloudInit.resolution.default_datasources",
            fake_default_datasources,
        )

        written = process_user_data(launcher_settings)

        assert launcher_settings.cell_config_file in written
        assert clients and all(client.is_closed for client in clients)

    def test_malformed_user_data_writes_nothing(self, launcher_settings, fake_datasource):
        source = fake_datasource("waagent", payload=b"write_files: [\n")

        with pytest.raises(SchemaError):
            process_user_data(launcher_settings, [source])

        assert not launcher_settings.itzo_url_file.exists()


class TestReadCellConfig:
    def test_missing_file_is_empty(self, tmp_path: Path):
        assert read_cell_config(tmp_path / "cell_config.yaml") == {}

    def test_values_are_flattened_to_strings(self, tmp_path: Path):
        path = tmp_path / "cell_config.yaml"
        path.write_text("itzoFlag-use-podman: true\nreplicas: 3\n")

        assert read_cell_config(path) == {"itzoFlag-use-podman": "true", "replicas": "3"}
