"""Tests for the core command registry and dispatcher."""

import json
from unittest.mock import MagicMock

import pytest

from devkit.client.commands import (
    COMMANDS,
    merge_options,
    read_params_file,
    run_command,
    validate_required,
)
from devkit.client.types import FileResponse, PackageResponse
from devkit.errors import DevkitError, MissingParametersError


@pytest.fixture
def client_factory():
    """A factory returning one MagicMock client usable as a context manager."""
    client = MagicMock()
    client.__enter__.return_value = client
    client.__exit__.return_value = False
    factory = MagicMock(return_value=client)
    factory.client = client
    return factory


def test_registered_commands():
    assert {"create-file", "upload-file", "create-package", "post-login"} <= set(COMMANDS)
    assert COMMANDS["post-login"].requires_auth is False


class TestReadParamsFile:
    def test_requires_at_prefix(self, tmp_path):
        with pytest.raises(DevkitError, match="must start with @"):
            read_params_file(str(tmp_path / "p.json"))

    def test_requires_json_suffix(self, tmp_path):
        with pytest.raises(DevkitError, match="JSON file"):
            read_params_file(f"@{tmp_path / 'p.txt'}")

    def test_reads_object(self, tmp_path):
        path = tmp_path / "p.json"
        path.write_text(json.dumps({"index": "i1"}))
        assert read_params_file(f"@{path}") == {"index": "i1"}

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "p.json"
        path.write_text("{")
        with pytest.raises(DevkitError, match="Failed to read or parse"):
            read_params_file(f"@{path}")


def test_cli_values_win_over_file_values():
    merged = merge_options({"tag": "cli", "index": None}, {"tag": "file", "index": "i"})
    assert merged == {"tag": "cli", "index": "i"}


class TestValidateRequired:
    def test_lists_every_missing_key(self):
        with pytest.raises(MissingParametersError) as exc_info:
            validate_required({"a": 1}, ("a", "b", "c"))
        assert exc_info.value.missing == ["b", "c"]

    def test_nested_key_only_enforced_when_parent_present(self):
        validate_required({}, ("meta.name",))
        with pytest.raises(MissingParametersError):
            validate_required({"meta": {}}, ("meta.name",))

    def test_nested_key_enforced_when_parent_required(self):
        with pytest.raises(MissingParametersError) as exc_info:
            validate_required({}, ("meta", "meta.name"))
        assert exc_info.value.missing == ["meta", "meta.name"]


class TestRunCommand:
    def test_create_package_merges_file_and_sends(self, tmp_path, settings, client_factory):
        params = tmp_path / "params.json"
        params.write_text(json.dumps({
            "index": "i1",
            "files": ["f1", "f2"],
            "organisation": "acme",
            "application": "shop",
            "tag": "from-file",
        }))
        client_factory.client.create_package.return_value = PackageResponse(
            version=4, index="i1", files=["f1", "f2"]
        )

        result = run_command(
            "create-package",
            f"@{params}",
            {"token": "tok", "tag": "from-cli"},
            settings=settings,
            client_factory=client_factory,
        )

        assert result == {"version": 4, "index": "i1", "files": ["f1", "f2"]}
        client_factory.assert_called_once_with(
            "http://airborne.test", token="tok", timeout=settings.request_timeout
        )
        client_factory.client.create_package.assert_called_once_with(
            index="i1",
            files=["f1", "f2"],
            organisation="acme",
            application="shop",
            tag="from-cli",
        )

    def test_authenticated_command_requires_token(self, settings, client_factory):
        with pytest.raises(MissingParametersError, match="token"):
            run_command(
                "create-file",
                None,
                {"file_path": "a.js", "url": "u", "organisation": "o", "application": "a"},
                settings=settings,
                client_factory=client_factory,
            )
        client_factory.assert_not_called()

    def test_create_file_decodes_metadata(self, settings, client_factory):
        client_factory.client.create_file.return_value = FileResponse(id="f", file_path="a.js")

        run_command(
            "create-file",
            None,
            {
                "file_path": "a.js",
                "url": "https://cdn/a.js",
                "organisation": "o",
                "application": "a",
                "metadata": '{"k": "v"}',
                "token": "tok",
            },
            settings=settings,
            client_factory=client_factory,
        )

        kwargs = client_factory.client.create_file.call_args.kwargs
        assert kwargs["metadata"] == {"k": "v"}
        assert "token" not in kwargs

    def test_unknown_command(self, settings):
        with pytest.raises(DevkitError, match="Unknown command"):
            run_command("delete-everything", None, {}, settings=settings)
