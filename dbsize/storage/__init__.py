"""
Storage 子系统：物理路径构造、文件访问与磁盘占用求和。

模块清单：
- relpath: 分叉(fork)、存储定位符与数据目录内的路径规则
- file_access: stat / 目录枚举原语（"不存在"作为返回值而不是异常）
- segment_size: 单个分叉的段链求和
- directory_size: 目录与表空间根目录求和
"""

from .relpath import (
    ForkNumber,
    Persistence,
    StorageObjectLocator,
    DEFAULT_TABLESPACE_ID,
    GLOBAL_TABLESPACE_ID,
    TABLESPACE_VERSION_DIRECTORY,
    fork_from_name,
    relpath,
    tablespace_path,
)
from .file_access import FileAccess, FileStat
from .segment_size import segment_chain_size
from .directory_size import directory_tree_size, tablespace_tree_size
