# system_manager.py

import os
from typing import Dict, List, Optional

from loguru import logger

from dbsize.config import DbSizeConfig
from dbsize.engine.access_control import AccessChecker
from dbsize.engine.catalog_manager import CatalogManager
from dbsize.engine.size_calculator import SizeCalculator
from dbsize.storage.file_access import FileAccess


class SystemManager:
    """系统管理类，负责为一个数据目录组装目录、权限检查与大小计算组件"""

    def __init__(self, config: DbSizeConfig):
        self.config = config
        self.base_data_dir = config.data_dir

        if not os.path.isdir(self.base_data_dir):
            raise Exception(f"数据目录 '{self.base_data_dir}' 不存在。")

        self.catalog_manager = CatalogManager(catalog_path=config.catalog_path)
        self.file_access = FileAccess(self.base_data_dir)
        self.current_db_name: Optional[str] = None
        self.current_role: str = config.role
        self._components: Dict[str, object] = {}

        self.use_database(config.database)

    def use_database(self, db_name: str) -> None:
        """切换到指定的数据库上下文"""
        if self.catalog_manager.find_database(db_name) is None:
            raise Exception(f"数据库 '{db_name}' 不存在。")
        self.current_db_name = db_name
        self._rebuild_components()

    def set_role(self, role: str) -> None:
        """切换当前角色"""
        if self.catalog_manager.get_role(role) is None:
            raise Exception(f"角色 '{role}' 不存在。")
        self.current_role = role
        self._rebuild_components()

    def _rebuild_components(self) -> None:
        access_checker = AccessChecker(self.catalog_manager, self.current_role, self.current_db_name)
        size_calculator = SizeCalculator(
            self.catalog_manager,
            self.file_access,
            access_checker,
            version_directory=self.config.tablespace_version_directory,
        )
        self._components = {
            "catalog_manager": self.catalog_manager,
            "file_access": self.file_access,
            "access_checker": access_checker,
            "size_calculator": size_calculator,
        }
        logger.debug(f"[SystemManager] 当前数据库 {self.current_db_name}, 角色 {self.current_role}")

    def get_current_components(self) -> Dict:
        """获取当前上下文的全套组件"""
        if self.current_db_name is None:
            raise Exception("错误：未选择任何数据库。")
        return self._components

    @property
    def size_calculator(self) -> SizeCalculator:
        return self._components["size_calculator"]

    def list_databases(self) -> List[str]:
        return sorted(info.name for info in self.catalog_manager.databases.values())

    def list_tablespaces(self) -> List[str]:
        return sorted(info.name for info in self.catalog_manager.tablespaces.values())

    def shutdown(self) -> None:
        """目录只在修改时写盘，这里只释放组件"""
        self._components = {}
        logger.debug("[SystemManager] 已关闭")
