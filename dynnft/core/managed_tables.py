"""Catalog (reference) and instance (state) tables backing dynamic metadata."""

import logging
from typing import NamedTuple

from .utils.core_utils import AttrDict
from .sql_helpers import check_int, to_insert, to_update, to_select
from .table_model import Column, Table, builtin_types
from .table_store import TableCreationError, MissingRowError

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PREFIX = "flowers"
DEFAULT_INSTANCE_PREFIX = "tokens"

catalog_columns = AttrDict({
    'key': 'id',
    'content_ref': 'cid',
    'label': 'stage',
    'tag': 'color',
})

instance_columns = AttrDict({
    'id': 'id',
    'catalog_key': 'stage_id',
})


class CatalogRow (NamedTuple):
    key: int
    content_ref: str
    label: str
    tag: str


def catalog_table_def(prefix=DEFAULT_CATALOG_PREFIX):
    return Table.define(prefix, [
        Column.define(catalog_columns.key, builtin_types.int, primary_key=True),
        Column.define(catalog_columns.label, builtin_types.text, nullok=False),
        Column.define(catalog_columns.tag, builtin_types.text, nullok=False),
        Column.define(catalog_columns.content_ref, builtin_types.text, nullok=False),
    ])


def instance_table_def(prefix=DEFAULT_INSTANCE_PREFIX):
    return Table.define(prefix, [
        Column.define(instance_columns.id, builtin_types.int, primary_key=True),
        Column.define(instance_columns.catalog_key, builtin_types.int, nullok=False),
    ])


def _create(store, registry, network_id, table_def):
    prefix = table_def['table_name']
    result = store.create_table(prefix, network_id, Table.schema(table_def))
    if not result.ok:
        raise TableCreationError("Unable to create table '%s': %s" % (prefix, result.error))
    return registry.bind(prefix, network_id, result.table_id)


class CatalogTable (object):
    """Reference table mapping a small integer key to descriptive attributes.

    The table is created and seeded once; no update or delete operations are
    offered afterwards.
    """

    def __init__(self, store, binding, rows):
        self.store = store
        self.binding = binding
        self._rows = {row.key: row for row in rows}

    @classmethod
    def create(cls, store, registry, network_id, rows, prefix=DEFAULT_CATALOG_PREFIX):
        """Create the catalog table, record its binding and seed it.

        :param store: the TableStore hosting the table
        :param registry: the TableRegistry receiving the binding
        :param network_id: the chain id of the deployment
        :param rows: one or more CatalogRow seeds
        :param prefix: the logical table name
        """
        rows = [CatalogRow(*row) for row in rows]
        cls._check_rows(rows)
        table_def = catalog_table_def(prefix)
        binding = _create(store, registry, network_id, table_def)
        fields = {column: field for field, column in catalog_columns.items()}
        columns = Table.column_names(table_def)
        store.mutate(binding.remote_name, to_insert(
            binding.remote_name,
            columns,
            [tuple(getattr(row, fields[column]) for column in columns) for row in rows]
        ))
        logger.info("Seeded catalog table %s with %d row(s)", binding.remote_name, len(rows))
        return cls(store, binding, rows)

    @staticmethod
    def _check_rows(rows):
        if not rows:
            raise ValueError("The catalog requires at least one seed row")
        seen = set()
        for row in rows:
            check_int(row.key, "catalog key", minimum=1)
            if row.key in seen:
                raise ValueError("Duplicate catalog key: %d" % row.key)
            seen.add(row.key)
            for field in ('content_ref', 'label', 'tag'):
                if not isinstance(getattr(row, field), str):
                    raise ValueError("Catalog row %d: %s must be a string" % (row.key, field))

    @property
    def name(self):
        return self.binding.remote_name

    @property
    def keys(self):
        return sorted(self._rows)

    def row(self, key):
        return self._rows.get(key)

    def __contains__(self, key):
        return key in self._rows


class InstanceTable (object):
    """Mutable table holding one row per minted unit and its catalog key."""

    def __init__(self, store, binding):
        self.store = store
        self.binding = binding

    @classmethod
    def create(cls, store, registry, network_id, prefix=DEFAULT_INSTANCE_PREFIX):
        binding = _create(store, registry, network_id, instance_table_def(prefix))
        return cls(store, binding)

    @property
    def name(self):
        return self.binding.remote_name

    def insert(self, instance_id, catalog_key):
        """Insert the row for a new instance.

        Raises DuplicateRowError if the id is already present.
        """
        check_int(instance_id, "instance id")
        check_int(catalog_key, "catalog key")
        self.store.mutate(self.name, to_insert(
            self.name,
            [instance_columns.id, instance_columns.catalog_key],
            [(instance_id, catalog_key)]
        ))
        logger.debug("Inserted instance %d with catalog key %d", instance_id, catalog_key)

    def update(self, instance_id, catalog_key):
        """Point an existing instance at a different catalog key.

        Raises MissingRowError if the id is not present.
        """
        check_int(instance_id, "instance id")
        check_int(catalog_key, "catalog key")
        count = self.store.mutate(self.name, to_update(
            self.name,
            [(instance_columns.catalog_key, catalog_key)],
            [(instance_columns.id, instance_id)]
        ))
        if not count:
            raise MissingRowError("No row with id %d in %s" % (instance_id, self.name))
        logger.debug("Updated instance %d to catalog key %d", instance_id, catalog_key)

    def catalog_key(self, instance_id):
        """Return the current catalog key of an instance, or None if absent."""
        check_int(instance_id, "instance id")
        return self.store.read(
            to_select(self.name, [instance_columns.catalog_key], [(instance_columns.id, instance_id)]),
            extract=True,
            unwrap=True
        )
