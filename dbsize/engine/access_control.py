# -*- coding: utf-8 -*-
"""
权限检查 - 把逻辑标识解析为 oid 并检查当前角色能否查看其大小

- 数据库：需要 CONNECT 权限，或属于 pg_read_all_stats
- 表空间：当前数据库的默认表空间无需检查；否则需要属于 pg_read_all_stats 或拥有 CREATE 权限
- 超级用户通过所有检查
"""
from typing import Union

from loguru import logger

from .catalog_manager import CatalogManager, ROLE_READ_ALL_STATS
from .errors import AccessDeniedError, ObjectNotFoundError

ACL_CONNECT = 'CONNECT'
ACL_CREATE = 'CREATE'


class AccessChecker:
    """以某个角色、某个当前数据库为上下文的权限检查器"""

    def __init__(self, catalog_manager: CatalogManager, role: str, current_database: str):
        self.catalog_manager = catalog_manager
        self.role = role
        self.current_database_id = catalog_manager.get_database_oid(current_database)
        if catalog_manager.get_role(role) is None:
            raise ObjectNotFoundError('role', role)

    @property
    def current_tablespace_id(self) -> int:
        return self.catalog_manager.databases[self.current_database_id].default_tablespace_id

    def is_superuser(self) -> bool:
        info = self.catalog_manager.get_role(self.role)
        return info is not None and info.superuser

    def has_privs_of_role(self, target: str) -> bool:
        """超级用户拥有所有角色的权限，其余角色按成员关系传递"""
        if self.is_superuser():
            return True
        return target in self.catalog_manager.role_memberships(self.role)

    def _has_acl(self, acl, privilege: str) -> bool:
        if self.is_superuser():
            return True
        for role in self.catalog_manager.role_memberships(self.role) | {'PUBLIC'}:
            if privilege in acl.get(role, []):
                return True
        return False

    def resolve_database(self, database: Union[int, str]) -> int:
        """名字或 oid -> 数据库 oid；名字不存在抛出 ObjectNotFoundError"""
        if isinstance(database, str):
            return self.catalog_manager.get_database_oid(database)
        return database

    def resolve_tablespace(self, tablespace: Union[int, str]) -> int:
        if isinstance(tablespace, str):
            return self.catalog_manager.get_tablespace_oid(tablespace)
        return tablespace

    def check_database(self, database_id: int) -> None:
        info = self.catalog_manager.databases.get(database_id)
        acl = info.acl if info else {}
        if self._has_acl(acl, ACL_CONNECT) or self.has_privs_of_role(ROLE_READ_ALL_STATS):
            return
        name = info.name if info else str(database_id)
        logger.warning(f"[AccessChecker] 角色 {self.role} 无权查看数据库 {name}")
        raise AccessDeniedError('database', name)

    def check_tablespace(self, tablespace_id: int) -> None:
        if tablespace_id == self.current_tablespace_id or self.has_privs_of_role(ROLE_READ_ALL_STATS):
            return
        info = self.catalog_manager.tablespaces.get(tablespace_id)
        acl = info.acl if info else {}
        if self._has_acl(acl, ACL_CREATE):
            return
        name = info.name if info else str(tablespace_id)
        logger.warning(f"[AccessChecker] 角色 {self.role} 无权查看表空间 {name}")
        raise AccessDeniedError('tablespace', name)

    def resolve_and_authorize_database(self, database: Union[int, str]) -> int:
        database_id = self.resolve_database(database)
        self.check_database(database_id)
        return database_id

    def resolve_and_authorize_tablespace(self, tablespace: Union[int, str]) -> int:
        tablespace_id = self.resolve_tablespace(tablespace)
        self.check_tablespace(tablespace_id)
        return tablespace_id
