# directory_size.py

from typing import Optional

from loguru import logger

from dbsize.engine.cancellation import CancellationToken, check_for_interrupts
from .file_access import FileAccess


def directory_tree_size(fs: FileAccess, path: str,
                        cancel: Optional[CancellationToken] = None) -> int:
    """
    目录下所有目录项的 st_size 之和；目录不存在时返回 0。
    在枚举和 stat 之间被删除的项直接跳过。不递归子目录。
    """
    names = fs.enumerate_directory(path)
    if names is None:
        return 0

    dir_size = 0
    for name in names:
        check_for_interrupts(cancel)

        entry_path = f'{path}/{name}'
        fst = fs.stat_file(entry_path)
        if fst is None:
            logger.warning(f"[directory_size] 目录项已消失，跳过: {entry_path}")
            continue
        dir_size += fst.size

    logger.debug(f"[directory_size] {path}: {dir_size} 字节")
    return dir_size


def tablespace_tree_size(fs: FileAccess, root: str,
                         cancel: Optional[CancellationToken] = None) -> Optional[int]:
    """
    表空间根目录的大小：根目录下每一项的 st_size，子目录（各数据库的目录）再加上一层目录求和。
    根目录不存在时返回 None，以区分"表空间已被删除"和"表空间为空"。
    """
    names = fs.enumerate_directory(root)
    if names is None:
        return None

    total_size = 0
    for name in names:
        check_for_interrupts(cancel)

        entry_path = f'{root}/{name}'
        fst = fs.stat_file(entry_path)
        if fst is None:
            logger.warning(f"[directory_size] 目录项已消失，跳过: {entry_path}")
            continue
        if fst.is_directory:
            total_size += directory_tree_size(fs, entry_path, cancel)
        total_size += fst.size

    logger.debug(f"[directory_size] 表空间 {root}: {total_size} 字节")
    return total_size
