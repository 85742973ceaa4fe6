"""Helpers for composing the SQL statements sent to a remote table store.

Statements are plain text: the remote store only accepts a statement string,
so values are rendered as SQL literals here rather than bound as parameters.
"""

import re

_identifier_re = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


def is_sql_identifier(s):
    return isinstance(s, str) and _identifier_re.match(s) is not None


def check_identifier(s, what="identifier"):
    if not is_sql_identifier(s):
        raise ValueError("Invalid SQL %s: %r" % (what, s))
    return s


def check_int(v, what="value", minimum=0):
    # bool is an int subclass but never a valid key
    if isinstance(v, bool) or not isinstance(v, int):
        raise ValueError("%s must be an integer, not %s" % (what, type(v).__name__))
    if v < minimum:
        raise ValueError("%s must be >= %d, got %d" % (what, minimum, v))
    return v


def sql_literal(v):
    if v is None:
        return 'NULL'
    if isinstance(v, bool):
        return 'true' if v else 'false'
    if isinstance(v, int):
        return '%d' % v
    # double ' to protect from SQL
    s = '%s' % v
    return "'%s'" % (s.replace("'", "''"))


def table_name(prefix, network_id, table_id=None):
    """Return the remote name of a table.

       Without a table_id this is the name used in the CREATE statement;
       the store appends the id it assigns.
    """
    check_identifier(prefix, "table prefix")
    check_int(network_id, "network id")
    if table_id is None:
        return "%s_%d" % (prefix, network_id)
    check_int(table_id, "table id")
    return "%s_%d_%d" % (prefix, network_id, table_id)


def to_create(name, schema):
    check_identifier(name, "table name")
    return "CREATE TABLE %s (%s)" % (name, schema)


def to_insert(name, columns, rows):
    """Build a single, possibly multi-row, INSERT statement."""
    check_identifier(name, "table name")
    columns = [check_identifier(c, "column name") for c in columns]
    rows = list(rows)
    if not rows:
        raise ValueError("INSERT requires at least one row")
    values = []
    for row in rows:
        if len(row) != len(columns):
            raise ValueError("Row %r does not match columns %r" % (row, columns))
        values.append("(%s)" % ",".join(sql_literal(v) for v in row))
    return "INSERT INTO %s (%s) VALUES %s" % (name, ",".join(columns), ",".join(values))


def to_update(name, setters, filters):
    """Build an UPDATE statement from column/value pairs.

       Both setters and filters are sequences of (column, value) pairs;
       filters are conjoined.
    """
    check_identifier(name, "table name")
    if not setters:
        raise ValueError("UPDATE requires at least one setter")
    if not filters:
        raise ValueError("UPDATE without a filter is not allowed")
    return "UPDATE %s SET %s WHERE %s" % (
        name,
        ",".join("%s=%s" % (check_identifier(c, "column name"), sql_literal(v)) for c, v in setters),
        " and ".join("%s=%s" % (check_identifier(c, "column name"), sql_literal(v)) for c, v in filters),
    )


def to_select(name, columns, filters=()):
    check_identifier(name, "table name")
    stmt = "select %s from %s" % (",".join(check_identifier(c, "column name") for c in columns), name)
    if filters:
        stmt += " where %s" % " and ".join(
            "%s=%s" % (check_identifier(c, "column name"), sql_literal(v)) for c, v in filters)
    return stmt
