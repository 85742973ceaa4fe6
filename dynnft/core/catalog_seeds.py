"""Loading and validation of catalog seed documents."""

import io
import json
import logging
import pkgutil
import jsonschema

from .. import core
from .managed_tables import CatalogRow

logger = logging.getLogger(__name__)

_schema = None


def seed_schema():
    global _schema
    if _schema is None:
        _schema = json.loads(pkgutil.get_data(core.__name__, 'schemas/catalog-seeds.schema.json').decode())
    return _schema


def validate(doc):
    """Validate a seed document.

    :param doc: the decoded seed document
    :return: a list of validation errors, if any
    """
    validator = jsonschema.Draft7Validator(seed_schema())
    errors = sorted(validator.iter_errors(doc), key=lambda e: list(e.path))
    for e in errors:
        logger.error("Invalid catalog seed document at %s: %s", "/".join(str(p) for p in e.path), e.message)
    if not errors:
        keys = [row['key'] for row in doc['catalog']]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            msg = "Duplicate catalog key(s): %s" % ", ".join(str(k) for k in duplicates)
            logger.error(msg)
            errors.append(jsonschema.ValidationError(msg))
    return errors


def rows_from_doc(doc):
    """Return the CatalogRow seeds of a document, raising the first validation error."""
    errors = validate(doc)
    if errors:
        raise errors[0]
    # draft-07 integers include 1.0
    return [CatalogRow(int(row['key']), row['content_ref'], row['label'], row['tag']) for row in doc['catalog']]


def load_seed_file(path):
    with io.open(path, encoding='utf-8') as f:
        return rows_from_doc(json.load(f))


def default_seed_rows():
    """Return the seeds shipped with the package (config/examples/flowers.json)."""
    from .. import config
    return rows_from_doc(json.loads(pkgutil.get_data(config.__name__, 'examples/flowers.json').decode()))
