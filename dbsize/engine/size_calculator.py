# size_calculator.py

from typing import Optional, Union

from loguru import logger

from dbsize.storage.directory_size import directory_tree_size, tablespace_tree_size
from dbsize.storage.file_access import FileAccess
from dbsize.storage.relpath import (
    DEFAULT_TABLESPACE_DIR,
    ForkNumber,
    TABLESPACE_LINK_DIR,
    TABLESPACE_VERSION_DIRECTORY,
    StorageObjectLocator,
    fork_from_name,
    relpath,
    tablespace_path,
)
from dbsize.storage.segment_size import segment_chain_size
from .access_control import AccessChecker
from .cancellation import CancellationToken, check_for_interrupts
from .catalog_manager import CatalogManager, RelationInfo
from .errors import ObjectNotFoundError

RelationRef = Union[int, str]


class SizeCalculator:
    """
    对象大小的组合计算。
    它通过协调 CatalogManager、AccessChecker 和 FileAccess 完成所有计算，
    自身不持有任何可变状态，也不加任何锁。
    """

    def __init__(self, catalog_manager: CatalogManager, file_access: FileAccess,
                 access_checker: AccessChecker,
                 version_directory: str = TABLESPACE_VERSION_DIRECTORY):
        """
        :param catalog_manager: 系统目录，用于查找关系、索引与 toast 表。
        :param file_access: 以数据目录为根的文件访问器。
        :param access_checker: 数据库/表空间大小的权限检查。
        :param version_directory: 非默认表空间下的版本子目录名。
        """
        self.catalog_manager = catalog_manager
        self.file_access = file_access
        self.access_checker = access_checker
        self.version_directory = version_directory

    # --- 定位符级别的计算 ---

    def calculate_relation_size(self, locator: StorageObjectLocator, backend: int, fork: ForkNumber,
                                cancel: Optional[CancellationToken] = None) -> int:
        """一个分叉的段链大小"""
        return segment_chain_size(self.file_access, locator, fork, backend, cancel,
                                  self.version_directory)

    def _all_forks_size(self, rel: RelationInfo, cancel: Optional[CancellationToken]) -> int:
        if not rel.has_storage:
            return 0
        locator = self.catalog_manager.relation_locator(rel)
        backend = self.catalog_manager.relation_backend(rel)
        size = 0
        for fork in ForkNumber:
            size += self.calculate_relation_size(locator, backend, fork, cancel)
        return size

    def calculate_toast_table_size(self, toast_relid: int,
                                   cancel: Optional[CancellationToken] = None) -> int:
        """toast 表的全部大小，包括它自己的所有索引（每个都含所有分叉）"""
        toast_rel = self.catalog_manager.get_relation(toast_relid)
        if toast_rel is None:
            logger.warning(f"[SizeCalculator] toast 表 {toast_relid} 已不存在，按 0 计算")
            return 0
        size = self._all_forks_size(toast_rel, cancel)
        for index_rel in self.catalog_manager.get_index_list(toast_rel):
            size += self._all_forks_size(index_rel, cancel)
        return size

    def calculate_table_size(self, rel: RelationInfo,
                             cancel: Optional[CancellationToken] = None) -> int:
        """
        表本身所有分叉（含 FSM、VM）的大小，再加上 toast 表。
        不包括表上的索引。作用于索引或 toast 表时同样成立。
        """
        size = self._all_forks_size(rel, cancel)
        if rel.toast_relid is not None:
            size += self.calculate_toast_table_size(rel.toast_relid, cancel)
        return size

    def calculate_indexes_size(self, rel: RelationInfo,
                               cancel: Optional[CancellationToken] = None) -> int:
        """附属于该关系的全部索引的大小；作用于索引时得到 0"""
        size = 0
        if rel.has_index:
            for index_rel in self.catalog_manager.get_index_list(rel):
                size += self._all_forks_size(index_rel, cancel)
        return size

    def calculate_total_relation_size(self, rel: RelationInfo,
                                      cancel: Optional[CancellationToken] = None) -> int:
        return self.calculate_table_size(rel, cancel) + self.calculate_indexes_size(rel, cancel)

    def calculate_database_size(self, database_id: int,
                                cancel: Optional[CancellationToken] = None) -> int:
        """
        默认表空间下的数据库目录，加上每个非默认表空间下属于该数据库的目录。
        全局表空间中的共享对象不计入。
        """
        total_size = directory_tree_size(self.file_access, f'{DEFAULT_TABLESPACE_DIR}/{database_id}', cancel)

        tablespace_ids = self.file_access.enumerate_directory(TABLESPACE_LINK_DIR)
        if tablespace_ids is None:
            logger.warning(f"[SizeCalculator] 目录 {TABLESPACE_LINK_DIR} 不存在，只统计默认表空间")
            return total_size

        for name in tablespace_ids:
            check_for_interrupts(cancel)
            path = f'{TABLESPACE_LINK_DIR}/{name}/{self.version_directory}/{database_id}'
            total_size += directory_tree_size(self.file_access, path, cancel)

        return total_size

    def calculate_tablespace_size(self, tablespace_id: int,
                                  cancel: Optional[CancellationToken] = None) -> Optional[int]:
        """表空间根目录找不到时返回 None"""
        root = tablespace_path(tablespace_id, self.version_directory)
        return tablespace_tree_size(self.file_access, root, cancel)

    # --- 查询级别的接口 ---

    def _try_open_relation(self, rel: RelationRef) -> Optional[RelationInfo]:
        """
        按 oid 打开关系，不存在返回 None（可能已被并发删除）。
        按名字查找时名字必须存在。
        """
        if isinstance(rel, str):
            info = self.catalog_manager.find_relation(self.access_checker.current_database_id, rel)
            if info is None:
                raise ObjectNotFoundError('relation', rel)
            return info
        return self.catalog_manager.get_relation(rel)

    def relation_size(self, rel: RelationRef, fork: str = 'main',
                      cancel: Optional[CancellationToken] = None) -> Optional[int]:
        fork_number = fork_from_name(fork)
        info = self._try_open_relation(rel)
        if info is None:
            return None
        if not info.has_storage:
            return 0
        locator = self.catalog_manager.relation_locator(info)
        backend = self.catalog_manager.relation_backend(info)
        return self.calculate_relation_size(locator, backend, fork_number, cancel)

    def table_size(self, rel: RelationRef, cancel: Optional[CancellationToken] = None) -> Optional[int]:
        info = self._try_open_relation(rel)
        if info is None:
            return None
        size = self.calculate_table_size(info, cancel)
        logger.debug(f"[SizeCalculator] table_size({info.name}) = {size}")
        return size

    def indexes_size(self, rel: RelationRef, cancel: Optional[CancellationToken] = None) -> Optional[int]:
        info = self._try_open_relation(rel)
        if info is None:
            return None
        size = self.calculate_indexes_size(info, cancel)
        logger.debug(f"[SizeCalculator] indexes_size({info.name}) = {size}")
        return size

    def total_size(self, rel: RelationRef, cancel: Optional[CancellationToken] = None) -> Optional[int]:
        info = self._try_open_relation(rel)
        if info is None:
            return None
        size = self.calculate_total_relation_size(info, cancel)
        logger.debug(f"[SizeCalculator] total_size({info.name}) = {size}")
        return size

    def database_size(self, database: Union[int, str],
                      cancel: Optional[CancellationToken] = None) -> int:
        database_id = self.access_checker.resolve_and_authorize_database(database)
        size = self.calculate_database_size(database_id, cancel)
        logger.info(f"[SizeCalculator] database_size({database}) = {size}")
        return size

    def tablespace_size(self, tablespace: Union[int, str],
                        cancel: Optional[CancellationToken] = None) -> Optional[int]:
        tablespace_id = self.access_checker.resolve_and_authorize_tablespace(tablespace)
        size = self.calculate_tablespace_size(tablespace_id, cancel)
        logger.info(f"[SizeCalculator] tablespace_size({tablespace}) = {size}")
        return size

    # --- 文件编号与路径 ---

    def relation_filenode(self, rel: RelationRef) -> Optional[int]:
        info = self._try_open_relation(rel)
        if info is None or not info.has_storage:
            return None
        return info.relfilenode

    def relation_filepath(self, rel: RelationRef) -> Optional[str]:
        """主分叉第0段相对数据目录的路径"""
        info = self._try_open_relation(rel)
        if info is None or not info.has_storage:
            return None
        locator = self.catalog_manager.relation_locator(info)
        backend = self.catalog_manager.relation_backend(info)
        return relpath(locator, ForkNumber.MAIN, backend, self.version_directory)

    def filenode_relation(self, tablespace_id: int, filenode: int) -> Optional[int]:
        """由 (表空间, 文件编号) 反查关系 oid；表空间 0 表示当前数据库的默认表空间"""
        if filenode == 0:
            return None
        return self.catalog_manager.relid_by_filenode(
            self.access_checker.current_database_id, tablespace_id, filenode)
