"""Tests for artifact checksums."""

import base64
import hashlib

import pytest

from devkit.files.checksum import CHUNK_SIZE, checksums_match, hex_to_base64, sha256_file_hex


def test_empty_file_digest(tmp_path):
    path = tmp_path / "empty.bin"
    path.write_bytes(b"")
    assert sha256_file_hex(path) == (
        "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    )


def test_known_digest(tmp_path):
    path = tmp_path / "abc.txt"
    path.write_bytes(b"abc")
    assert sha256_file_hex(path) == (
        "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    )


def test_multi_chunk_file_matches_hashlib(tmp_path):
    data = b"x" * (CHUNK_SIZE * 2 + 17)
    path = tmp_path / "big.bin"
    path.write_bytes(data)
    assert sha256_file_hex(path) == hashlib.sha256(data).hexdigest()


def test_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        sha256_file_hex(tmp_path / "nope.bin")


def test_hex_to_base64_encodes_raw_digest():
    digest = hashlib.sha256(b"abc")
    assert hex_to_base64(digest.hexdigest()) == base64.b64encode(digest.digest()).decode()


class TestChecksumsMatch:
    def test_hex_form_matches(self):
        hex_digest = hashlib.sha256(b"a").hexdigest()
        assert checksums_match(hex_digest, hex_digest)

    def test_base64_form_matches(self):
        hex_digest = hashlib.sha256(b"a").hexdigest()
        assert checksums_match(hex_to_base64(hex_digest), hex_digest)

    def test_different_content_does_not_match(self):
        assert not checksums_match(
            hashlib.sha256(b"a").hexdigest(), hashlib.sha256(b"b").hexdigest()
        )

    def test_empty_stored_checksum_never_matches(self):
        assert not checksums_match("", hashlib.sha256(b"").hexdigest())
