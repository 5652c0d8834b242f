import json
import os

import pytest
from dbsize.engine.catalog_manager import (
    CatalogManager, FIRST_NORMAL_OID, RELKIND_INDEX, RELKIND_TOAST, RELKIND_VIEW,
)
from dbsize.engine.errors import ConfigError, ObjectNotFoundError
from dbsize.storage.relpath import (
    DEFAULT_TABLESPACE_ID, GLOBAL_TABLESPACE_ID, INVALID_BACKEND, Persistence, StorageObjectLocator,
)


def test_bootstrap_contents(catalog):
    assert catalog.get_database_oid('postgres') == 5
    assert catalog.get_tablespace_oid('pg_default') == DEFAULT_TABLESPACE_ID
    assert catalog.get_tablespace_oid('pg_global') == GLOBAL_TABLESPACE_ID
    assert catalog.get_role('postgres').superuser
    assert catalog.next_oid == FIRST_NORMAL_OID
    assert os.path.exists(catalog.catalog_path)


def test_persistence_round_trip(tmp_path):
    path = str(tmp_path / 'catalog.json')
    catalog = CatalogManager(path)
    catalog.create_tablespace('fastspace', '/mnt/fast')
    table = catalog.create_relation('postgres', 't1', tablespace='fastspace')
    catalog.create_relation('postgres', 't1_idx', relkind=RELKIND_INDEX, index_of=table.oid)

    reloaded = CatalogManager(path)
    t1 = reloaded.find_relation(5, 't1')
    assert t1.tablespace_id == reloaded.get_tablespace_oid('fastspace')
    assert [r.name for r in reloaded.get_index_list(t1)] == ['t1_idx']
    assert reloaded.next_oid == catalog.next_oid


def test_corrupted_catalog_raises(tmp_path):
    path = tmp_path / 'catalog.json'
    path.write_text('{not json', encoding='utf-8')
    with pytest.raises(ConfigError):
        CatalogManager(str(path))
    path.write_text(json.dumps([1, 2]), encoding='utf-8')
    with pytest.raises(ConfigError):
        CatalogManager(str(path))


def test_relfilenode_defaults(catalog):
    table = catalog.create_relation('postgres', 't')
    view = catalog.create_relation('postgres', 'v', relkind=RELKIND_VIEW)
    assert table.relfilenode == table.oid
    assert table.has_storage
    assert view.relfilenode == 0
    assert not view.has_storage


def test_toast_and_index_links(catalog):
    table = catalog.create_relation('postgres', 't')
    toast = catalog.create_relation('postgres', 'pg_toast_t', relkind=RELKIND_TOAST, toast_of=table.oid)
    idx = catalog.create_relation('postgres', 't_idx', relkind=RELKIND_INDEX, index_of=table.oid)
    assert table.toast_relid == toast.oid
    assert table.index_oids == [idx.oid]
    assert table.has_index

    catalog.drop_relation(table.oid)
    assert catalog.get_relation(toast.oid) is None
    assert catalog.get_relation(idx.oid) is None


def test_duplicate_names_rejected(catalog):
    catalog.create_relation('postgres', 't')
    with pytest.raises(Exception):
        catalog.create_relation('postgres', 't')
    with pytest.raises(Exception):
        catalog.create_database('postgres')
    with pytest.raises(Exception):
        catalog.create_tablespace('pg_default', '')


def test_lookup_errors(catalog):
    with pytest.raises(ObjectNotFoundError):
        catalog.get_database_oid('nope')
    with pytest.raises(ObjectNotFoundError):
        catalog.get_tablespace_oid('nope')
    with pytest.raises(ObjectNotFoundError):
        catalog.get_relation_strict(1)
    with pytest.raises(ObjectNotFoundError):
        catalog.drop_relation(1)
    assert catalog.get_relation(1) is None


def test_relation_locator(catalog):
    catalog.create_tablespace('fastspace', '/mnt/fast', oid=16400)
    catalog.create_database('other', oid=30000, default_tablespace_id=16400)
    a = catalog.create_relation('postgres', 'a', oid=17000)
    b = catalog.create_relation('postgres', 'b', tablespace='fastspace', oid=17001)
    c = catalog.create_relation('other', 'c', oid=17002)
    d = catalog.create_relation('postgres', 'd', shared=True, oid=1262)
    assert catalog.relation_locator(a) == StorageObjectLocator(DEFAULT_TABLESPACE_ID, 5, 17000)
    assert catalog.relation_locator(b) == StorageObjectLocator(16400, 5, 17001)
    # 数据库默认表空间记为 0
    assert c.tablespace_id == 0
    assert catalog.relation_locator(c) == StorageObjectLocator(16400, 30000, 17002)
    assert catalog.relation_locator(d) == StorageObjectLocator(GLOBAL_TABLESPACE_ID, 0, 1262)


def test_relation_backend(catalog):
    temp = catalog.create_relation('postgres', 'tmp', persistence=Persistence.TEMP, backend=9)
    perm = catalog.create_relation('postgres', 'perm')
    assert catalog.relation_backend(temp) == 9
    assert catalog.relation_backend(perm) == INVALID_BACKEND


def test_relid_by_filenode_skips_temp(catalog):
    temp = catalog.create_relation('postgres', 'tmp', persistence=Persistence.TEMP, backend=9)
    assert catalog.relid_by_filenode(5, 0, temp.relfilenode) is None


def test_role_memberships_are_transitive(catalog):
    catalog.create_role('monitoring')
    catalog.create_role('bob', member_of=['monitoring'])
    catalog.grant_role('pg_read_all_stats', 'monitoring')
    assert catalog.role_memberships('bob') == {'bob', 'monitoring', 'pg_read_all_stats'}
    with pytest.raises(ObjectNotFoundError):
        catalog.grant_role('nope', 'bob')


def test_grant(catalog):
    catalog.create_role('alice')
    catalog.grant('database', 'postgres', 'alice', 'CONNECT')
    catalog.grant('database', 'postgres', 'alice', 'CONNECT')
    assert catalog.databases[5].acl == {'alice': ['CONNECT']}
    with pytest.raises(ValueError):
        catalog.grant('schema', 'public', 'alice', 'USAGE')
    with pytest.raises(ObjectNotFoundError):
        catalog.grant('tablespace', 'nope', 'alice', 'CREATE')
