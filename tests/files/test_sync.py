"""Tests for the synchronization reconciler.

The remote API is the in-memory FakeRemote from conftest; nothing touches
the network.
"""

import pytest

from devkit.client.types import FileResponse
from devkit.errors import StoreWriteError, SyncEnvironmentError
from devkit.files.checksum import hex_to_base64
from devkit.files.mapping import MappingStore
from devkit.files.sync import SyncReconciler
from devkit.files.types import SyncConfig
from devkit.release.types import FileRef
from tests.fakes import FakeRemote, sha256_hex


@pytest.fixture
def store(project_dir) -> MappingStore:
    return MappingStore(project_dir)


@pytest.fixture
def reconciler(store, fake_remote, sync_config) -> SyncReconciler:
    return SyncReconciler(store, fake_remote, sync_config)


class TestUpload:
    def test_fresh_sync_uploads_every_file(self, reconciler, store, fake_remote, write_build_file):
        a = write_build_file("a.js", b"alpha")
        b = write_build_file("b.js", b"beta")

        summary = reconciler.upload(["a.js", "b.js"])

        assert (summary.processed, summary.existing, summary.failed) == (2, 0, 0)
        assert summary.is_success
        assert store.get(None, "a.js").remote_id == "id-a.js"
        assert store.get(None, "b.js").remote_id == "id-b.js"
        sent = fake_remote.ops("upload")
        assert [c["file_path"] for c in sent] == ["a.js", "b.js"]
        assert sent[0]["checksum"] == hex_to_base64(sha256_hex(a))
        assert sent[1]["checksum"] == hex_to_base64(sha256_hex(b))

    def test_second_run_is_idempotent(self, reconciler, fake_remote, write_build_file):
        write_build_file("a.js", b"alpha")
        write_build_file("b.js", b"beta")
        reconciler.upload(["a.js", "b.js"])
        fake_remote.calls.clear()

        summary = reconciler.upload(["a.js", "b.js"])

        assert (summary.processed, summary.existing, summary.failed) == (0, 2, 0)
        assert fake_remote.calls == []

    def test_changed_content_is_uploaded_again(self, reconciler, store, fake_remote, write_build_file):
        write_build_file("a.js", b"v1")
        reconciler.upload(["a.js"])
        new = write_build_file("a.js", b"v2")
        fake_remote.calls.clear()

        summary = reconciler.upload(["a.js"])

        assert summary.processed == 1
        assert len(fake_remote.ops("upload")) == 1
        assert store.get(None, "a.js").checksum == hex_to_base64(sha256_hex(new))

    def test_hex_checksum_in_store_counts_as_unchanged(self, reconciler, store, fake_remote, write_build_file):
        data = write_build_file("a.js", b"alpha")
        store.put(None, "a.js", "id-old", sha256_hex(data))

        summary = reconciler.upload(["a.js"])

        assert summary.existing == 1
        assert fake_remote.calls == []

    def test_partial_failure_is_isolated(self, reconciler, store, fake_remote, write_build_file):
        write_build_file("a.js", b"alpha")
        write_build_file("c.js", b"gamma")

        summary = reconciler.upload(["a.js", "b.js", "c.js"])

        assert (summary.processed, summary.existing, summary.failed) == (2, 0, 1)
        assert not summary.is_success
        assert summary.errors[0].file_path == "b.js"
        assert "File not found" in summary.errors[0].error
        assert [c["file_path"] for c in fake_remote.ops("upload")] == ["a.js", "c.js"]
        assert store.get(None, "c.js") is not None

    def test_remote_error_is_recorded_and_batch_continues(self, store, sync_config, write_build_file):
        remote = FakeRemote(fail_paths={"a.js"})
        write_build_file("a.js", b"alpha")
        write_build_file("b.js", b"beta")

        summary = SyncReconciler(store, remote, sync_config).upload(["a.js", "b.js"])

        assert summary.failed == 1
        assert summary.processed == 1
        assert summary.to_dict()["errors"] == [{"file": "a.js", "error": "server rejected a.js"}]
        assert store.get(None, "a.js") is None

    def test_server_copy_with_other_content_counts_as_existing(self, store, sync_config, write_build_file):
        remote = FakeRemote(remote_checksums={"a.js": "server-checksum"})
        write_build_file("a.js", b"alpha")

        summary = SyncReconciler(store, remote, sync_config).upload(["a.js"])

        assert (summary.processed, summary.existing) == (0, 1)
        assert store.get(None, "a.js").checksum == "server-checksum"

    def test_store_write_failure_fails_only_that_file(self, reconciler, store, fake_remote, write_build_file, monkeypatch):
        write_build_file("a.js", b"alpha")
        write_build_file("b.js", b"beta")
        real_put = store.put

        def put(tag, file_path, remote_id, checksum):
            if file_path == "a.js":
                raise StoreWriteError(str(store.path), OSError("read-only file system"))
            return real_put(tag, file_path, remote_id, checksum)

        monkeypatch.setattr(store, "put", put)

        summary = reconciler.upload(["a.js", "b.js"])

        assert (summary.processed, summary.existing, summary.failed) == (1, 0, 1)
        assert summary.errors[0].file_path == "a.js"
        assert "read-only file system" in summary.errors[0].error
        assert [c["file_path"] for c in fake_remote.ops("upload")] == ["a.js", "b.js"]
        assert store.get(None, "a.js") is None
        assert store.get(None, "b.js") is not None

    def test_response_without_id_is_a_failure(self, store, sync_config, write_build_file):
        class NoIdRemote(FakeRemote):
            def upload_file(self, **kwargs):
                return FileResponse(file_path=kwargs["file_path"])

        write_build_file("a.js", b"alpha")
        summary = SyncReconciler(store, NoIdRemote(), sync_config).upload(["a.js"])

        assert summary.failed == 1
        assert "invalid response" in summary.errors[0].error
        assert store.get(None, "a.js") is None

    def test_tag_is_sent_and_scopes_the_mapping(self, store, fake_remote, project_dir, write_build_file):
        write_build_file("a.js", b"alpha")
        config = SyncConfig(
            directory_path=str(project_dir),
            platform="android",
            organisation="acme",
            namespace="shop",
            token="t",
            tag="beta",
        )

        SyncReconciler(store, fake_remote, config).upload(["a.js"])

        assert fake_remote.ops("upload")[0]["tag"] == "beta"
        assert fake_remote.ops("upload")[0]["application"] == "shop"
        assert store.get("beta", "a.js") is not None
        assert store.get(None, "a.js") is None

    def test_accepts_file_refs(self, reconciler, write_build_file):
        write_build_file("nested/dir/a.js", b"alpha")
        summary = reconciler.upload([FileRef(file_path="nested/dir/a.js")])
        assert summary.processed == 1

    def test_missing_project_root_raises(self, store, fake_remote, tmp_path):
        config = SyncConfig(
            directory_path=str(tmp_path / "missing"),
            platform="android",
            organisation="acme",
            namespace="shop",
            token="t",
        )
        with pytest.raises(SyncEnvironmentError):
            SyncReconciler(store, fake_remote, config).upload(["a.js"])

    def test_relative_root_resolves_against_cwd(self, store, fake_remote, project_dir, write_build_file, monkeypatch):
        write_build_file("a.js", b"alpha")
        monkeypatch.chdir(project_dir.parent)
        config = SyncConfig(
            directory_path=project_dir.name,
            platform="android",
            organisation="acme",
            namespace="shop",
            token="t",
        )
        assert SyncReconciler(store, fake_remote, config).upload(["a.js"]).processed == 1


class TestCreate:
    def test_registers_url_under_prefix(self, reconciler, store, fake_remote, write_build_file):
        write_build_file("a.js", b"alpha")
        write_build_file("img/b.png", b"beta")

        summary = reconciler.create(["a.js", "img/b.png"], "https://cdn.example.com/app")

        assert summary.mode == "create"
        assert summary.processed == 2
        urls = [c["url"] for c in fake_remote.ops("create")]
        assert urls == ["https://cdn.example.com/app/a.js", "https://cdn.example.com/app/img/b.png"]
        assert fake_remote.ops("upload") == []

    def test_registration_records_local_checksum(self, reconciler, store, fake_remote, write_build_file):
        data = write_build_file("a.js", b"alpha")
        reconciler.create(["a.js"], "https://cdn.example.com/")
        assert store.get(None, "a.js").checksum == sha256_hex(data)

        fake_remote.calls.clear()
        summary = reconciler.create(["a.js"], "https://cdn.example.com/")
        assert summary.existing == 1
        assert fake_remote.calls == []
