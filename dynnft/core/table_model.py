"""Table definitions for the remote relational store."""

from .utils.core_utils import AttrDict
from .sql_helpers import check_identifier


class Type (object):
    """Named column type.
    """
    def __init__(self, typename):
        self.typename = typename

    def ddl(self):
        return self.typename

    def __repr__(self):
        return "<Type %s>" % self.typename


builtin_types = AttrDict({
    typename: Type(typename)
    for typename in {'int', 'integer', 'text', 'blob', 'any'}
})


class Column (object):
    """Named column."""

    @classmethod
    def define(cls, cname, ctype, nullok=True, primary_key=False):
        """Build a column definition."""
        check_identifier(cname, "column name")
        if not isinstance(ctype, Type):
            raise TypeError('Ctype %s should be an instance of Type.' % ctype)
        if not isinstance(nullok, bool):
            raise TypeError('Nullok %s should be an instance of bool.' % nullok)
        return {
            'name': cname,
            'type': ctype,
            'nullok': nullok,
            'primary_key': primary_key,
        }

    @staticmethod
    def ddl(column_def):
        parts = [column_def['name'], column_def['type'].ddl()]
        if column_def['primary_key']:
            parts.append('primary key')
        elif not column_def['nullok']:
            parts.append('not null')
        return ' '.join(parts)


class Table (object):
    """Table definition keyed by its logical name (the remote table prefix)."""

    @classmethod
    def define(cls, tname, column_defs=[]):
        """Build a table definition.

        :param tname: the logical name (prefix) of the newly defined table
        :param column_defs: a list of Column.define() results
        """
        check_identifier(tname, "table prefix")
        column_defs = list(column_defs)
        if not column_defs:
            raise ValueError("Table %s must define at least one column" % tname)
        names = [cdef['name'] for cdef in column_defs]
        if len(set(names)) != len(names):
            raise ValueError("Table %s defines duplicate columns: %s" % (tname, names))
        if sum(1 for cdef in column_defs if cdef['primary_key']) != 1:
            raise ValueError("Table %s must define exactly one primary key column" % tname)
        return {
            'table_name': tname,
            'column_definitions': column_defs,
        }

    @staticmethod
    def schema(table_def):
        """Return the column DDL fragment sent with a create-table request."""
        return ", ".join(Column.ddl(cdef) for cdef in table_def['column_definitions'])

    @staticmethod
    def column_names(table_def):
        return [cdef['name'] for cdef in table_def['column_definitions']]
