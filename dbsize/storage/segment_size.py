# segment_size.py

from typing import Optional

from loguru import logger

from dbsize.engine.cancellation import CancellationToken, check_for_interrupts
from .file_access import FileAccess
from .relpath import (
    ForkNumber,
    INVALID_BACKEND,
    StorageObjectLocator,
    TABLESPACE_VERSION_DIRECTORY,
    relpath,
    segment_path,
)


def segment_chain_size_at(fs: FileAccess, base_path: str,
                          cancel: Optional[CancellationToken] = None) -> int:
    """
    从第0段开始依次 stat 段文件并累加大小，遇到第一个不存在的段即停止。
    第0段不存在时返回 0（该分叉可能还没被扩展过）。
    """
    total_size = 0
    segno = 0
    while True:
        check_for_interrupts(cancel)

        path = segment_path(base_path, segno)
        fst = fs.stat_file(path)
        if fst is None:
            break
        total_size += fst.size
        segno += 1

    logger.debug(f"[segment_size] {base_path}: {segno} 段, {total_size} 字节")
    return total_size


def segment_chain_size(fs: FileAccess, locator: StorageObjectLocator, fork: ForkNumber,
                       backend: int = INVALID_BACKEND,
                       cancel: Optional[CancellationToken] = None,
                       version_directory: str = TABLESPACE_VERSION_DIRECTORY) -> int:
    """计算某个存储对象一个分叉的大小"""
    base_path = relpath(locator, fork, backend, version_directory)
    return segment_chain_size_at(fs, base_path, cancel)
