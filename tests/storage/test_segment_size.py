import errno
from unittest.mock import patch

import pytest
from dbsize.engine.cancellation import CancellationToken
from dbsize.engine.errors import QueryCanceledError, StorageIOError
from dbsize.storage.file_access import FileAccess, FileStat
from dbsize.storage.relpath import ForkNumber, StorageObjectLocator, DEFAULT_TABLESPACE_ID
from dbsize.storage.segment_size import segment_chain_size, segment_chain_size_at


def test_missing_segment_zero_is_zero(data_dir):
    fs = FileAccess(str(data_dir))
    assert segment_chain_size_at(fs, 'base/5/16500') == 0


def test_single_segment(data_dir, make_file):
    make_file('base/5/16500', 8192)
    fs = FileAccess(str(data_dir))
    assert segment_chain_size_at(fs, 'base/5/16500') == 8192


def test_chain_stops_at_first_gap(data_dir, make_file):
    make_file('base/5/16500', 1000)
    make_file('base/5/16500.1', 200)
    # 第2段缺失，第3、4段不应被计入
    make_file('base/5/16500.3', 30)
    make_file('base/5/16500.4', 4)
    fs = FileAccess(str(data_dir))
    assert segment_chain_size_at(fs, 'base/5/16500') == 1200


def test_segment_chain_size_by_fork(data_dir, make_file):
    make_file('base/5/16500', 8192)
    make_file('base/5/16500_fsm', 24576)
    make_file('base/5/16500_vm', 8192)
    fs = FileAccess(str(data_dir))
    loc = StorageObjectLocator(DEFAULT_TABLESPACE_ID, 5, 16500)
    assert segment_chain_size(fs, loc, ForkNumber.MAIN) == 8192
    assert segment_chain_size(fs, loc, ForkNumber.FSM) == 24576
    assert segment_chain_size(fs, loc, ForkNumber.VM) == 8192
    assert segment_chain_size(fs, loc, ForkNumber.INIT) == 0


def test_temp_relation_segments(data_dir, make_file):
    make_file('base/5/t3_16600', 100)
    make_file('base/5/t3_16600.1', 50)
    fs = FileAccess(str(data_dir))
    loc = StorageObjectLocator(DEFAULT_TABLESPACE_ID, 5, 16600)
    assert segment_chain_size(fs, loc, ForkNumber.MAIN, backend=3) == 150
    assert segment_chain_size(fs, loc, ForkNumber.MAIN) == 0


def test_io_error_propagates(data_dir, make_file):
    make_file('base/5/16500', 10)
    fs = FileAccess(str(data_dir))
    err = OSError(errno.EIO, 'Input/output error')
    with patch('dbsize.storage.file_access.os.stat', side_effect=err):
        with pytest.raises(StorageIOError):
            segment_chain_size_at(fs, 'base/5/16500')


class EndlessChain:
    """每一段都存在的假文件系统，第 n 次 stat 时触发取消"""

    def __init__(self, token, cancel_after):
        self.token = token
        self.cancel_after = cancel_after
        self.calls = 0

    def stat_file(self, path):
        self.calls += 1
        if self.calls == self.cancel_after:
            self.token.cancel()
        return FileStat(1, False)


def test_cancellation_between_probes():
    token = CancellationToken()
    fs = EndlessChain(token, cancel_after=5)
    with pytest.raises(QueryCanceledError):
        segment_chain_size_at(fs, 'base/5/1', cancel=token)
    assert fs.calls == 5
