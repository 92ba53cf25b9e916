"""
Unit tests for xrootd_explorer.xrdfs_client module.

Tests cover:
- Parsing of ``xrdfs ls -l`` output, including unrecognized lines
- Parsing of ``xrdfs stat`` output in both layouts
- Command lines built for ls, stat and xrdcp byte ranges
- Translation of command failures to standard Python exceptions

subprocess.run is mocked throughout; no XRootD tools are needed.
"""

import subprocess
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from xrootd_explorer.xrdfs_client import (
    MAX_ERROR,
    XRDFSClient,
    parse_listing,
    parse_stat,
    parse_time,
)

LS_OUTPUT = """\
drwxr-xr-x eic eic 4096 2024-10-01 08:15:00 /volatile/eic/EPIC/RECO/24.10.0
-rw-r--r-- eic eic 123456789 2024-10-02 13:45:30 /volatile/eic/EPIC/RECO/rec_1.root
-rw-r--r-- eic eic 0 2024-10-03 00:00:00 /volatile/eic/EPIC/RECO/with space.txt

"""

STAT_OUTPUT = """\
Path:   /volatile/eic/EPIC/RECO/rec_1.root
Id:     0
Size:   123456789
MTime:  2024-10-02 13:45:30
Flags:  16 (IsReadable)
Mode:   -rw-r--r--
"""


def completed(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def client(xrootd_config, conn_config) -> XRDFSClient:
    return XRDFSClient(xrootd_config, conn_config)


class TestParseTime:
    def test_xrdfs_format(self):
        assert parse_time("2024-10-02 13:45:30") == datetime(2024, 10, 2, 13, 45, 30)

    def test_extra_whitespace(self):
        assert parse_time(" 2024-10-02   13:45:30 ") == datetime(2024, 10, 2, 13, 45, 30)

    def test_iso_format(self):
        assert parse_time("2024-10-02T13:45:30") == datetime(2024, 10, 2, 13, 45, 30)

    def test_offset_converted_to_naive_local_time(self):
        expected = datetime(2024, 10, 2, 13, 45, 30, tzinfo=timezone.utc).astimezone()

        parsed = parse_time("2024-10-02T13:45:30+00:00")

        assert parsed.tzinfo is None
        assert parsed == expected.replace(tzinfo=None)

    def test_garbage_is_none(self):
        assert parse_time("yesterday") is None


class TestParseListing:
    def test_long_listing(self):
        entries = parse_listing(LS_OUTPUT)

        assert [e.name for e in entries] == ["24.10.0", "rec_1.root", "with space.txt"]
        assert entries[0].is_dir
        assert entries[0].size == 4096
        assert not entries[1].is_dir
        assert entries[1].size == 123456789
        assert entries[1].mtime == datetime(2024, 10, 2, 13, 45, 30)

    def test_trailing_slash_in_path(self):
        (entry,) = parse_listing("drwxr-xr-x a b 0 2024-01-01 00:00:00 /data/sub/\n")
        assert entry.name == "sub"

    def test_unrecognized_line_keeps_name_only(self):
        (entry,) = parse_listing("/data/plain_name.root\n")
        assert entry.name == "plain_name.root"
        assert not entry.is_dir
        assert entry.size is None
        assert entry.mtime is None

    def test_empty_output(self):
        assert parse_listing("") == []
        assert parse_listing("\n  \n") == []


class TestParseStat:
    def test_file_stat(self):
        info = parse_stat("/d/rec_1.root", STAT_OUTPUT)

        assert info.path == "/d/rec_1.root"
        assert info.size == 123456789
        assert info.mtime == datetime(2024, 10, 2, 13, 45, 30)
        assert not info.is_dir
        assert info.permissions == "-rw-r--r--"

    def test_directory_from_flags(self):
        output = "Size: 4096\nMTime: 2024-10-01 08:15:00\nFlags: 51 (XBitSet|IsDir|IsReadable)\n"
        info = parse_stat("/d", output)
        assert info.is_dir

    def test_explicit_is_dir_field(self):
        info = parse_stat("/d", "Size: 0\nModTime: 2024-10-01 08:15:00\nIsDir: true\n")
        assert info.is_dir
        assert info.mtime == datetime(2024, 10, 1, 8, 15)

    def test_missing_fields(self):
        info = parse_stat("/d", "")
        assert info.size == 0
        assert info.mtime is None
        assert not info.is_dir
        assert info.permissions is None


class TestXRDFSClientCommands:
    def test_server_trailing_slash_dropped(self, conn_config):
        from xrootd_explorer.config import XRootDConfig

        client = XRDFSClient(XRootDConfig(server="root://host/"), conn_config)
        assert client.server == "root://host"
        assert client.url("/data/f.root") == "root://host//data/f.root"

    @patch("xrootd_explorer.xrdfs_client.subprocess.run")
    def test_list_dir(self, mock_run, client):
        mock_run.return_value = completed(stdout=LS_OUTPUT.encode())

        entries = client.list_dir("/volatile/eic/EPIC/RECO")

        assert len(entries) == 3
        args = mock_run.call_args.args[0]
        assert args == ["xrdfs", "root://test.xrootd.local", "ls", "-l", "/volatile/eic/EPIC/RECO"]
        assert mock_run.call_args.kwargs["timeout"] == 30

    @patch("xrootd_explorer.xrdfs_client.subprocess.run")
    def test_get_file_info(self, mock_run, client):
        mock_run.return_value = completed(stdout=STAT_OUTPUT.encode())

        info = client.get_file_info("/d/rec_1.root")

        assert info.size == 123456789
        args = mock_run.call_args.args[0]
        assert args == ["xrdfs", "root://test.xrootd.local", "stat", "/d/rec_1.root"]

    @patch("xrootd_explorer.xrdfs_client.subprocess.run")
    def test_read_whole_file(self, mock_run, client):
        mock_run.return_value = completed(stdout=b"payload")

        assert client.read_file("/d/f.txt") == b"payload"
        assert mock_run.call_args.args[0] == ["xrdcp", "root://test.xrootd.local//d/f.txt", "-"]

    @patch("xrootd_explorer.xrdfs_client.subprocess.run")
    def test_read_byte_range(self, mock_run, client):
        mock_run.return_value = completed(stdout=b"234")

        client.read_file("/d/f.txt", offset=2, length=3)

        args = mock_run.call_args.args[0]
        assert args[:3] == ["xrdcp", "--range", "2:5"]

    @patch("xrootd_explorer.xrdfs_client.subprocess.run")
    def test_read_open_ended_range(self, mock_run, client):
        mock_run.return_value = completed(stdout=b"")

        client.read_file("/d/f.txt", offset=10)

        assert mock_run.call_args.args[0][1:3] == ["--range", "10:"]


class TestXRDFSClientErrors:
    @patch("xrootd_explorer.xrdfs_client.subprocess.run")
    def test_not_found(self, mock_run, client):
        mock_run.return_value = completed(
            stderr=b"[ERROR] Server responded with an error: [3011] No such file or directory",
            returncode=54,
        )
        with pytest.raises(FileNotFoundError):
            client.list_dir("/missing")

    @patch("xrootd_explorer.xrdfs_client.subprocess.run")
    def test_not_authorized(self, mock_run, client):
        mock_run.return_value = completed(stderr=b"[3010] Unable to open", returncode=54)
        with pytest.raises(PermissionError):
            client.get_file_info("/secret")

    @patch("xrootd_explorer.xrdfs_client.subprocess.run")
    def test_other_failure_is_oserror_with_truncated_stderr(self, mock_run, client):
        mock_run.return_value = completed(stderr=b"x" * (MAX_ERROR * 2), returncode=1)

        with pytest.raises(OSError) as exc_info:
            client.list_dir("/d")

        assert type(exc_info.value) is OSError
        assert len(str(exc_info.value)) == MAX_ERROR

    @patch("xrootd_explorer.xrdfs_client.subprocess.run")
    def test_timeout(self, mock_run, client):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="xrdfs", timeout=30)
        with pytest.raises(TimeoutError):
            client.list_dir("/d")

    @patch("xrootd_explorer.xrdfs_client.subprocess.run")
    def test_missing_binary_is_not_a_missing_path(self, mock_run, client):
        mock_run.side_effect = FileNotFoundError("xrdfs")

        with pytest.raises(OSError) as exc_info:
            client.list_dir("/d")

        assert not isinstance(exc_info.value, FileNotFoundError)


class TestXRDFSClientConnect:
    @patch("xrootd_explorer.xrdfs_client.shutil.which")
    def test_connect_checks_tools(self, mock_which, client):
        mock_which.return_value = "/usr/bin/xrdfs"
        client.connect()
        assert mock_which.call_count == 2

    @patch("xrootd_explorer.xrdfs_client.shutil.which")
    def test_connect_fails_without_tools(self, mock_which, client):
        mock_which.return_value = None
        with pytest.raises(ConnectionError, match="xrdfs"):
            client.connect()

    def test_disconnect_is_noop(self, client):
        client.disconnect()

    def test_constructor_runs_nothing(self, xrootd_config, conn_config):
        with patch("xrootd_explorer.xrdfs_client.subprocess.run") as mock_run:
            XRDFSClient(xrootd_config, conn_config)
        mock_run.assert_not_called()
