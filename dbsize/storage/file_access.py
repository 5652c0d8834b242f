# file_access.py

"""
文件系统访问原语。

"不存在"(ENOENT) 是一个正常的返回值 (None)，其他 OSError 一律包装为 StorageIOError 抛出。
所有路径都相对于 data_dir 解析。
"""

import errno
import os
import stat
from typing import Iterator, NamedTuple, Optional

from loguru import logger

from dbsize.engine.errors import StorageIOError


class FileStat(NamedTuple):
    size: int
    is_directory: bool


class FileAccess:
    """
    以某个数据目录为根的文件访问器。
    size_calculator 只通过这两个方法接触文件系统，测试可以替换成假的实现。
    """

    def __init__(self, data_dir: str = 'data'):
        self.data_dir = data_dir

    def _full_path(self, path: str) -> str:
        return os.path.join(self.data_dir, path)

    def stat_file(self, path: str) -> Optional[FileStat]:
        """返回 FileStat；文件不存在返回 None"""
        full_path = self._full_path(path)
        try:
            st = os.stat(full_path)
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error(f"[FileAccess] stat 失败: {full_path}: {e}")
            raise StorageIOError(path, e) from e
        return FileStat(st.st_size, stat.S_ISDIR(st.st_mode))

    def enumerate_directory(self, path: str) -> Optional[Iterator[str]]:
        """
        返回目录项名字的迭代器（不含 . 和 ..）；目录不存在返回 None。
        只在打开目录时区分 ENOENT，枚举中途的错误直接抛出。
        """
        full_path = self._full_path(path)
        try:
            it = os.scandir(full_path)
        except OSError as e:
            if e.errno == errno.ENOENT:
                return None
            logger.error(f"[FileAccess] 无法打开目录: {full_path}: {e}")
            raise StorageIOError(path, e, action="open directory") from e
        return self._iter_names(it, path)

    @staticmethod
    def _iter_names(it, path: str) -> Iterator[str]:
        with it:
            while True:
                try:
                    entry = next(it)
                except StopIteration:
                    return
                except OSError as e:
                    raise StorageIOError(path, e, action="read directory") from e
                if entry.name in ('.', '..'):
                    continue
                yield entry.name
