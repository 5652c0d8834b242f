"""
目录管理器（CatalogManager）

职责：
- 管理数据库、表空间、关系（表/索引/toast表/视图）与角色的元数据
- 以 JSON 文件持久化，启动时加载到内存
- 提供按 oid / 名字的查询，以及关系到物理定位符的映射

说明：
- 本模块只描述对象在哪里，不读写任何数据文件
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Set
import json
import os

from loguru import logger

from dbsize.storage.relpath import (
    DEFAULT_TABLESPACE_ID,
    GLOBAL_TABLESPACE_ID,
    INVALID_BACKEND,
    Persistence,
    StorageObjectLocator,
)
from .errors import ConfigError, ObjectNotFoundError

FIRST_NORMAL_OID = 16384

# 关系类型
RELKIND_TABLE = 'r'
RELKIND_INDEX = 'i'
RELKIND_TOAST = 't'
RELKIND_MATVIEW = 'm'
RELKIND_SEQUENCE = 'S'
RELKIND_VIEW = 'v'
RELKIND_PARTITIONED_TABLE = 'p'
RELKIND_PARTITIONED_INDEX = 'I'
RELKIND_FOREIGN_TABLE = 'f'

RELKINDS_WITH_STORAGE = {RELKIND_TABLE, RELKIND_INDEX, RELKIND_TOAST, RELKIND_MATVIEW, RELKIND_SEQUENCE}

# 预定义角色：成员可以查看所有对象的统计信息
ROLE_READ_ALL_STATS = 'pg_read_all_stats'


@dataclass
class TablespaceInfo:
    oid: int
    name: str
    location: str = ''
    acl: Dict[str, List[str]] = field(default_factory=dict)  # role -> 权限列表

    def to_dict(self):
        return {
            'oid': self.oid,
            'name': self.name,
            'location': self.location,
            'acl': self.acl,
        }

    @staticmethod
    def from_dict(d):
        return TablespaceInfo(
            oid=d['oid'],
            name=d['name'],
            location=d.get('location', ''),
            acl=d.get('acl', {}),
        )


@dataclass
class DatabaseInfo:
    oid: int
    name: str
    default_tablespace_id: int = DEFAULT_TABLESPACE_ID
    acl: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self):
        return {
            'oid': self.oid,
            'name': self.name,
            'default_tablespace_id': self.default_tablespace_id,
            'acl': self.acl,
        }

    @staticmethod
    def from_dict(d):
        return DatabaseInfo(
            oid=d['oid'],
            name=d['name'],
            default_tablespace_id=d.get('default_tablespace_id', DEFAULT_TABLESPACE_ID),
            acl=d.get('acl', {}),
        )


@dataclass
class RoleInfo:
    name: str
    superuser: bool = False
    member_of: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            'name': self.name,
            'superuser': self.superuser,
            'member_of': self.member_of,
        }

    @staticmethod
    def from_dict(d):
        return RoleInfo(d['name'], d.get('superuser', False), d.get('member_of', []))


@dataclass
class RelationInfo:
    oid: int
    name: str
    database_id: int                         # 共享关系为 0
    relkind: str = RELKIND_TABLE
    relfilenode: int = 0                     # 0 表示没有存储
    tablespace_id: int = 0                   # 0 表示所在数据库的默认表空间
    persistence: Persistence = Persistence.PERMANENT
    backend: Optional[int] = None            # 临时关系所属的后端编号
    toast_relid: Optional[int] = None        # 溢出(toast)表
    index_oids: List[int] = field(default_factory=list)

    @property
    def is_shared(self) -> bool:
        return self.database_id == 0

    @property
    def has_storage(self) -> bool:
        return self.relkind in RELKINDS_WITH_STORAGE and self.relfilenode != 0

    @property
    def has_index(self) -> bool:
        return len(self.index_oids) > 0

    def to_dict(self):
        return {
            'oid': self.oid,
            'name': self.name,
            'database_id': self.database_id,
            'relkind': self.relkind,
            'relfilenode': self.relfilenode,
            'tablespace_id': self.tablespace_id,
            'persistence': self.persistence.value,
            'backend': self.backend,
            'toast_relid': self.toast_relid,
            'index_oids': self.index_oids,
        }

    @staticmethod
    def from_dict(d):
        return RelationInfo(
            oid=d['oid'],
            name=d['name'],
            database_id=d['database_id'],
            relkind=d.get('relkind', RELKIND_TABLE),
            relfilenode=d.get('relfilenode', 0),
            tablespace_id=d.get('tablespace_id', 0),
            persistence=Persistence(d.get('persistence', Persistence.PERMANENT.value)),
            backend=d.get('backend'),
            toast_relid=d.get('toast_relid'),
            index_oids=d.get('index_oids', []),
        )


class CatalogManager:
    def __init__(self, catalog_path: str = 'catalog.json') -> None:
        self.catalog_path = catalog_path
        self.databases: Dict[int, DatabaseInfo] = {}
        self.tablespaces: Dict[int, TablespaceInfo] = {}
        self.relations: Dict[int, RelationInfo] = {}
        self.roles: Dict[str, RoleInfo] = {}
        self.next_oid = FIRST_NORMAL_OID
        self._load_catalog()

    # --- 持久化 ---

    def _bootstrap(self) -> None:
        """新目录的初始内容：两个系统表空间、postgres 数据库、超级用户与统计角色"""
        self.tablespaces = {
            DEFAULT_TABLESPACE_ID: TablespaceInfo(DEFAULT_TABLESPACE_ID, 'pg_default'),
            GLOBAL_TABLESPACE_ID: TablespaceInfo(GLOBAL_TABLESPACE_ID, 'pg_global'),
        }
        self.databases = {5: DatabaseInfo(5, 'postgres')}
        self.roles = {
            'postgres': RoleInfo('postgres', superuser=True),
            ROLE_READ_ALL_STATS: RoleInfo(ROLE_READ_ALL_STATS),
        }
        self.relations = {}
        self.next_oid = FIRST_NORMAL_OID

    def _load_catalog(self) -> None:
        """从JSON文件加载目录到内存缓存。如果文件不存在则创建一个初始目录。"""
        if not os.path.exists(self.catalog_path) or os.path.getsize(self.catalog_path) == 0:
            self._bootstrap()
            self._save_catalog()
            return

        try:
            with open(self.catalog_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"catalog file {self.catalog_path} is corrupted: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"catalog file {self.catalog_path} must contain a JSON object")

        self.tablespaces = {t['oid']: TablespaceInfo.from_dict(t) for t in data.get('tablespaces', [])}
        self.databases = {d['oid']: DatabaseInfo.from_dict(d) for d in data.get('databases', [])}
        self.relations = {r['oid']: RelationInfo.from_dict(r) for r in data.get('relations', [])}
        self.roles = {r['name']: RoleInfo.from_dict(r) for r in data.get('roles', [])}
        self.next_oid = data.get('next_oid', FIRST_NORMAL_OID)
        logger.debug(f"[CatalogManager] 已加载 {len(self.databases)} 个数据库, "
                     f"{len(self.tablespaces)} 个表空间, {len(self.relations)} 个关系")

    def _save_catalog(self) -> None:
        """将内存中的目录缓存持久化到JSON文件。"""
        data = {
            'next_oid': self.next_oid,
            'tablespaces': [t.to_dict() for t in self.tablespaces.values()],
            'databases': [d.to_dict() for d in self.databases.values()],
            'relations': [r.to_dict() for r in self.relations.values()],
            'roles': [r.to_dict() for r in self.roles.values()],
        }
        with open(self.catalog_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    def _allocate_oid(self, oid: Optional[int]) -> int:
        if oid is None:
            oid = self.next_oid
        self.next_oid = max(self.next_oid, oid + 1)
        return oid

    # --- 表空间 ---

    def create_tablespace(self, name: str, location: str, oid: Optional[int] = None) -> TablespaceInfo:
        if self.find_tablespace(name) is not None:
            raise Exception(f"tablespace \"{name}\" already exists")
        oid = self._allocate_oid(oid)
        info = TablespaceInfo(oid, name, location)
        self.tablespaces[oid] = info
        self._save_catalog()
        return info

    def find_tablespace(self, name: str) -> Optional[TablespaceInfo]:
        for info in self.tablespaces.values():
            if info.name == name:
                return info
        return None

    def get_tablespace_oid(self, name: str) -> int:
        info = self.find_tablespace(name)
        if info is None:
            raise ObjectNotFoundError('tablespace', name)
        return info.oid

    def get_tablespace_name(self, oid: int) -> Optional[str]:
        info = self.tablespaces.get(oid)
        return info.name if info else None

    # --- 数据库 ---

    def create_database(self, name: str, oid: Optional[int] = None,
                        default_tablespace_id: int = DEFAULT_TABLESPACE_ID) -> DatabaseInfo:
        if self.find_database(name) is not None:
            raise Exception(f"database \"{name}\" already exists")
        oid = self._allocate_oid(oid)
        info = DatabaseInfo(oid, name, default_tablespace_id)
        self.databases[oid] = info
        self._save_catalog()
        return info

    def find_database(self, name: str) -> Optional[DatabaseInfo]:
        for info in self.databases.values():
            if info.name == name:
                return info
        return None

    def get_database_oid(self, name: str) -> int:
        info = self.find_database(name)
        if info is None:
            raise ObjectNotFoundError('database', name)
        return info.oid

    def get_database_name(self, oid: int) -> Optional[str]:
        info = self.databases.get(oid)
        return info.name if info else None

    # --- 角色与授权 ---

    def create_role(self, name: str, superuser: bool = False, member_of: Optional[List[str]] = None) -> RoleInfo:
        if name in self.roles:
            raise Exception(f"role \"{name}\" already exists")
        info = RoleInfo(name, superuser, list(member_of or []))
        self.roles[name] = info
        self._save_catalog()
        return info

    def grant_role(self, role: str, member: str) -> None:
        """把 member 加入 role"""
        if role not in self.roles:
            raise ObjectNotFoundError('role', role)
        if member not in self.roles:
            raise ObjectNotFoundError('role', member)
        if role not in self.roles[member].member_of:
            self.roles[member].member_of.append(role)
        self._save_catalog()

    def grant(self, object_type: str, object_name: str, role: str, privilege: str) -> None:
        """object_type: 'database' 或 'tablespace'"""
        if object_type == 'database':
            target = self.find_database(object_name)
        elif object_type == 'tablespace':
            target = self.find_tablespace(object_name)
        else:
            raise ValueError(f"unsupported object type: {object_type}")
        if target is None:
            raise ObjectNotFoundError(object_type, object_name)
        privileges = target.acl.setdefault(role, [])
        if privilege not in privileges:
            privileges.append(privilege)
        self._save_catalog()

    def get_role(self, name: str) -> Optional[RoleInfo]:
        return self.roles.get(name)

    def role_memberships(self, name: str) -> Set[str]:
        """角色自身以及（传递地）所属的全部角色"""
        result: Set[str] = set()
        pending = [name]
        while pending:
            current = pending.pop()
            if current in result:
                continue
            result.add(current)
            info = self.roles.get(current)
            if info:
                pending.extend(info.member_of)
        return result

    # --- 关系 ---

    def create_relation(self, database: str, name: str, relkind: str = RELKIND_TABLE,
                        relfilenode: Optional[int] = None, tablespace: Optional[str] = None,
                        persistence: Persistence = Persistence.PERMANENT,
                        backend: Optional[int] = None,
                        index_of: Optional[int] = None,
                        toast_of: Optional[int] = None,
                        shared: bool = False,
                        oid: Optional[int] = None) -> RelationInfo:
        """
        注册一个关系。
        index_of: 作为该关系的索引登记；toast_of: 作为该关系的 toast 表登记。
        relfilenode 缺省时与 oid 相同；视图等没有存储的关系 relfilenode 为 0。
        """
        if shared:
            database_id = 0
        else:
            database_id = self.get_database_oid(database)
        if self.find_relation(database_id, name) is not None:
            raise Exception(f"relation \"{name}\" already exists")

        if shared:
            # 共享关系只能放在全局表空间
            tablespace_id = GLOBAL_TABLESPACE_ID
        elif tablespace is None:
            tablespace_id = 0
        else:
            tablespace_id = self.get_tablespace_oid(tablespace)
            if tablespace_id == self.databases[database_id].default_tablespace_id:
                tablespace_id = 0

        oid = self._allocate_oid(oid)
        if relfilenode is None:
            relfilenode = oid if relkind in RELKINDS_WITH_STORAGE else 0

        info = RelationInfo(oid, name, database_id, relkind, relfilenode, tablespace_id,
                            persistence, backend)
        self.relations[oid] = info

        if index_of is not None:
            self.get_relation_strict(index_of).index_oids.append(oid)
        if toast_of is not None:
            self.get_relation_strict(toast_of).toast_relid = oid

        self._save_catalog()
        return info

    def drop_relation(self, oid: int) -> None:
        """删除关系元数据（连带其 toast 表与索引），不触碰数据文件"""
        info = self.relations.pop(oid, None)
        if info is None:
            raise ObjectNotFoundError('relation', str(oid))
        for child in list(info.index_oids) + ([info.toast_relid] if info.toast_relid else []):
            if child in self.relations:
                self.drop_relation(child)
        for other in self.relations.values():
            if oid in other.index_oids:
                other.index_oids.remove(oid)
            if other.toast_relid == oid:
                other.toast_relid = None
        self._save_catalog()

    def get_relation(self, oid: int) -> Optional[RelationInfo]:
        return self.relations.get(oid)

    def get_relation_strict(self, oid: int) -> RelationInfo:
        info = self.relations.get(oid)
        if info is None:
            raise ObjectNotFoundError('relation', str(oid))
        return info

    def find_relation(self, database_id: int, name: str) -> Optional[RelationInfo]:
        """在指定数据库以及共享关系中按名字查找"""
        for info in self.relations.values():
            if info.name == name and info.database_id in (database_id, 0):
                return info
        return None

    def get_index_list(self, rel: RelationInfo) -> List[RelationInfo]:
        # 并发删除的索引直接跳过
        return [self.relations[oid] for oid in rel.index_oids if oid in self.relations]

    def list_relations(self, database_id: int) -> List[RelationInfo]:
        return [r for r in self.relations.values() if r.database_id in (database_id, 0)]

    # --- 物理定位 ---

    def relation_locator(self, rel: RelationInfo) -> StorageObjectLocator:
        """关系 -> (表空间, 数据库, 文件编号)"""
        if rel.tablespace_id != 0:
            tablespace_id = rel.tablespace_id
        else:
            tablespace_id = self.databases[rel.database_id].default_tablespace_id
        database_id = 0 if tablespace_id == GLOBAL_TABLESPACE_ID else rel.database_id
        return StorageObjectLocator(tablespace_id, database_id, rel.relfilenode)

    def relation_backend(self, rel: RelationInfo) -> int:
        if rel.persistence == Persistence.TEMP:
            return rel.backend if rel.backend is not None else INVALID_BACKEND
        return INVALID_BACKEND

    def relid_by_filenode(self, database_id: int, tablespace_id: int, relfilenode: int) -> Optional[int]:
        """
        由 (表空间, 文件编号) 反查关系 oid，临时关系不参与查找。
        tablespace_id 为 0 或等于数据库默认表空间时都按默认表空间匹配。
        """
        default_tablespace_id = self.databases[database_id].default_tablespace_id
        if tablespace_id == default_tablespace_id:
            tablespace_id = 0
        for info in self.relations.values():
            if info.persistence == Persistence.TEMP or not info.has_storage:
                continue
            if info.relfilenode != relfilenode:
                continue
            if tablespace_id == GLOBAL_TABLESPACE_ID:
                if info.is_shared:
                    return info.oid
            elif info.database_id == database_id and info.tablespace_id == tablespace_id:
                return info.oid
        return None
