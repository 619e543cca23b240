"""Tests for the filesystem gateway."""

import pytest

from memo_sync.errors import FilesystemError
from memo_sync.gateways import FilesystemGateway
from memo_sync.gateways.filesystem import read_file_with_encoding


class TestReadFileWithEncoding:
    def test_plain_text(self, tmp_path):
        path = tmp_path / "c.json"
        path.write_text('{"id": "c1", "name": "Basics"}', encoding="utf-8")

        content, encoding = read_file_with_encoding(path)

        assert content == '{"id": "c1", "name": "Basics"}'
        assert encoding == "utf-8"

    def test_bom_stripped(self, tmp_path):
        path = tmp_path / "c.json"
        path.write_bytes(b"\xef\xbb\xbf" + b'{"id": "c1"}')

        content, _ = read_file_with_encoding(path)

        assert content == '{"id": "c1"}'

    def test_empty_file(self, tmp_path):
        path = tmp_path / "c.json"
        path.write_bytes(b"")

        assert read_file_with_encoding(path) == ("", "utf-8")


class TestFilesystemGateway:
    async def test_reads_file(self, tmp_path):
        path = tmp_path / "c1.json"
        path.write_text("{}", encoding="utf-8")

        assert await FilesystemGateway().read_file_as_string(path) == "{}"

    async def test_accepts_string_path(self, tmp_path):
        path = tmp_path / "c1.json"
        path.write_text("[]", encoding="utf-8")

        assert await FilesystemGateway().read_file_as_string(str(path)) == "[]"

    async def test_missing_file(self, tmp_path):
        with pytest.raises(FilesystemError, match="File not found") as exc:
            await FilesystemGateway().read_file_as_string(
                tmp_path / "nope.json"
            )
        assert exc.value.path == str(tmp_path / "nope.json")
        assert exc.value.kind == "filesystem"

    async def test_directory_is_not_a_file(self, tmp_path):
        with pytest.raises(FilesystemError):
            await FilesystemGateway().read_file_as_string(tmp_path)
