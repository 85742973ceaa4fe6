"""Synthesis of the SQL statement that computes a token's metadata document.

The statement joins the instance table to the catalog table and projects a
single JSON object column shaped as ERC-721 metadata:

    {"name": ..., "image": ..., "attributes": [{display_type, trait_type, value},
                                                {display_type, trait_type, value}]}

Synthesis is pure string templating over the bound table names; no store is
consulted. An id without a row, or a row whose catalog key has no catalog
entry, still yields a valid statement which simply selects no rows.
"""

from typing import NamedTuple

from .sql_helpers import check_int, check_identifier, sql_literal
from .managed_tables import catalog_columns, instance_columns, DEFAULT_CATALOG_PREFIX, DEFAULT_INSTANCE_PREFIX


class MetadataTemplate (NamedTuple):
    name_prefix: str = "Friendship Seed #"
    image_scheme: str = "ipfs://"
    image_extension: str = ".jpg"
    display_type: str = "string"
    label_trait: str = "Flower Stage"
    tag_trait: str = "Flower Color"
    catalog_table: str = DEFAULT_CATALOG_PREFIX
    instance_table: str = DEFAULT_INSTANCE_PREFIX

    @classmethod
    def from_config(cls, config):
        """Build a template from a (possibly partial) configuration mapping."""
        unknown = set(config or {}) - set(cls._fields)
        if unknown:
            raise ValueError("Unknown metadata template setting(s): %s" % ", ".join(sorted(unknown)))
        return cls(**(config or {}))


DEFAULT_TEMPLATE = MetadataTemplate()


def _attribute(template, trait, column):
    return "json_object('display_type',%s,'trait_type',%s,'value',%s)" % (
        sql_literal(template.display_type), sql_literal(trait), column)


def synthesize(registry, instance_id, template=DEFAULT_TEMPLATE):
    """Return the metadata statement for one instance.

    :param registry: TableRegistry holding the bindings of both tables
    :param instance_id: the instance (token) id
    :param template: MetadataTemplate supplying the literal parts
    """
    check_int(instance_id, "instance id")
    tokens = check_identifier(registry.remote_name(template.instance_table), "table name")
    flowers = check_identifier(registry.remote_name(template.catalog_table), "table name")
    label, tag, content_ref = catalog_columns.label, catalog_columns.tag, catalog_columns.content_ref

    document = "json_object(%s)" % ",".join([
        "'name',%s||%s.%s" % (sql_literal(template.name_prefix), tokens, instance_columns.id),
        "'image',%s||%s||'/'||%s||%s" % (
            sql_literal(template.image_scheme), content_ref, label, sql_literal(template.image_extension)),
        "'attributes',json_array(%s,%s)" % (
            _attribute(template, template.label_trait, label),
            _attribute(template, template.tag_trait, tag)),
    ])

    return "select %s from %s join %s on %s.%s = %s.%s where %s.%s=%d group by %s.%s" % (
        document,
        tokens, flowers,
        tokens, instance_columns.catalog_key, flowers, catalog_columns.key,
        tokens, instance_columns.id, instance_id,
        tokens, instance_columns.id,
    )


class QuerySynthesizer (object):
    """Binds a registry and template for repeated synthesis."""

    def __init__(self, registry, template=DEFAULT_TEMPLATE):
        self.registry = registry
        self.template = template

    def synthesize(self, instance_id):
        return synthesize(self.registry, instance_id, self.template)
