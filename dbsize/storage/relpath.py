# relpath.py

"""
数据目录内的物理路径规则。

布局：
- 默认表空间:   base/<db>/<relnumber>
- 全局表空间:   global/<relnumber>
- 其他表空间:   pg_tblspc/<spc>/<版本目录>/<db>/<relnumber>
- 临时表文件名: t<backend>_<relnumber>
- 分叉后缀:     main 无后缀, 其余为 _fsm / _vm / _init
"""

from enum import Enum, IntEnum
from typing import NamedTuple, Optional

from dbsize.engine.errors import InvalidForkNameError

# --- 常量定义 ---
DEFAULT_TABLESPACE_ID = 1663
GLOBAL_TABLESPACE_ID = 1664
INVALID_BACKEND = -1
TABLESPACE_VERSION_DIRECTORY = 'PG_17_202406281'

DEFAULT_TABLESPACE_DIR = 'base'
GLOBAL_TABLESPACE_DIR = 'global'
TABLESPACE_LINK_DIR = 'pg_tblspc'


class ForkNumber(IntEnum):
    """存储对象的分叉，按固定顺序遍历（数值即遍历顺序）"""
    MAIN = 0
    FSM = 1
    VM = 2
    INIT = 3

    @property
    def fork_name(self) -> str:
        return FORK_NAMES[self]


FORK_NAMES = {
    ForkNumber.MAIN: 'main',
    ForkNumber.FSM: 'fsm',
    ForkNumber.VM: 'vm',
    ForkNumber.INIT: 'init',
}


class Persistence(Enum):
    PERMANENT = 'p'
    UNLOGGED = 'u'
    TEMP = 't'


class StorageObjectLocator(NamedTuple):
    """物理存储对象的定位符: (表空间, 所属数据库或0表示共享, 文件编号)"""
    tablespace_id: int
    database_id: int
    relnumber: int


def fork_from_name(name: str) -> ForkNumber:
    """分叉名 -> ForkNumber，未知名字抛出 InvalidForkNameError"""
    for fork, fork_name in FORK_NAMES.items():
        if fork_name == name:
            return fork
    valid = ', '.join(f'"{n}"' for n in FORK_NAMES.values())
    raise InvalidForkNameError(
        'invalid fork name',
        hint=f'Valid fork names are {valid}.',
    )


def tablespace_path(tablespace_id: int,
                    version_directory: str = TABLESPACE_VERSION_DIRECTORY) -> str:
    """表空间根目录（相对数据目录）"""
    if tablespace_id == DEFAULT_TABLESPACE_ID:
        return DEFAULT_TABLESPACE_DIR
    if tablespace_id == GLOBAL_TABLESPACE_ID:
        return GLOBAL_TABLESPACE_DIR
    return f'{TABLESPACE_LINK_DIR}/{tablespace_id}/{version_directory}'


def database_path(tablespace_id: int, database_id: int,
                  version_directory: str = TABLESPACE_VERSION_DIRECTORY) -> str:
    """某数据库在某表空间下的目录"""
    if tablespace_id == GLOBAL_TABLESPACE_ID:
        return GLOBAL_TABLESPACE_DIR
    return f'{tablespace_path(tablespace_id, version_directory)}/{database_id}'


def relpath(locator: StorageObjectLocator,
            fork: ForkNumber = ForkNumber.MAIN,
            backend: int = INVALID_BACKEND,
            version_directory: str = TABLESPACE_VERSION_DIRECTORY) -> str:
    """
    构造某个分叉第0段的路径（相对数据目录）。
    backend != INVALID_BACKEND 表示临时关系，文件名带 t<backend>_ 前缀。
    """
    if locator.tablespace_id == GLOBAL_TABLESPACE_ID:
        # 共享对象不可能是临时的
        if backend != INVALID_BACKEND:
            raise ValueError('shared relations cannot be temporary')
        file_name = str(locator.relnumber)
    elif backend == INVALID_BACKEND:
        file_name = str(locator.relnumber)
    else:
        file_name = f't{backend}_{locator.relnumber}'

    if fork != ForkNumber.MAIN:
        file_name = f'{file_name}_{FORK_NAMES[fork]}'

    directory = database_path(locator.tablespace_id, locator.database_id, version_directory)
    return f'{directory}/{file_name}'


def segment_path(base_path: str, segno: int) -> str:
    """第0段使用裸路径，第n段使用 base_path.n"""
    if segno == 0:
        return base_path
    return f'{base_path}.{segno}'


def backend_for(persistence: Persistence, backend: Optional[int]) -> int:
    """按持久化类型决定路径使用的 backend 编号"""
    if persistence == Persistence.TEMP:
        if backend is None or backend == INVALID_BACKEND:
            raise ValueError('temporary relation without owning backend')
        return backend
    return INVALID_BACKEND
