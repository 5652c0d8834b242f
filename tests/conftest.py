import os

import pytest

from dbsize.engine.access_control import AccessChecker
from dbsize.engine.catalog_manager import CatalogManager, RELKIND_INDEX, RELKIND_TOAST
from dbsize.engine.size_calculator import SizeCalculator
from dbsize.storage.file_access import FileAccess
from dbsize.storage.relpath import TABLESPACE_VERSION_DIRECTORY


def write_file(root, rel_path, size):
    """在数据目录下创建指定大小的文件"""
    full_path = os.path.join(str(root), rel_path)
    os.makedirs(os.path.dirname(full_path), exist_ok=True)
    with open(full_path, 'wb') as f:
        f.write(b'\x00' * size)
    return full_path


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path


@pytest.fixture
def catalog(tmp_path):
    return CatalogManager(catalog_path=str(tmp_path / 'catalog.json'))


@pytest.fixture
def cluster(tmp_path):
    """
    一个小的数据目录：
    - 数据库 postgres (oid 5)
    - 表空间 fastspace (oid 16400)，位于 pg_tblspc/16400/<版本目录>
    - 表 orders (16500)，toast 表 (16501) 及其索引 (16502)，两个索引 (16503, 16504)
    """
    catalog_manager = CatalogManager(catalog_path=str(tmp_path / 'catalog.json'))
    catalog_manager.create_tablespace('fastspace', '/mnt/fast', oid=16400)
    os.makedirs(tmp_path / 'pg_tblspc' / '16400' / TABLESPACE_VERSION_DIRECTORY)

    orders = catalog_manager.create_relation('postgres', 'orders', oid=16500)
    toast = catalog_manager.create_relation('postgres', 'pg_toast_16500', relkind=RELKIND_TOAST,
                                            toast_of=orders.oid, oid=16501)
    catalog_manager.create_relation('postgres', 'pg_toast_16500_index', relkind=RELKIND_INDEX,
                                    index_of=toast.oid, oid=16502)
    catalog_manager.create_relation('postgres', 'orders_pkey', relkind=RELKIND_INDEX,
                                    index_of=orders.oid, oid=16503)
    catalog_manager.create_relation('postgres', 'orders_date_idx', relkind=RELKIND_INDEX,
                                    index_of=orders.oid, tablespace='fastspace', oid=16504)

    access_checker = AccessChecker(catalog_manager, 'postgres', 'postgres')
    calculator = SizeCalculator(catalog_manager, FileAccess(str(tmp_path)), access_checker)
    return calculator


@pytest.fixture
def make_file(tmp_path):
    """make_file('base/5/16500', 8192) -> 在 tmp_path 下创建文件"""
    def _make(rel_path, size):
        return write_file(tmp_path, rel_path, size)
    return _make
