"""Gateway URIs carrying a percent-encoded statement.

Each network mode has a base URI ending in the statement query parameter and
carrying the two result-shaping controls:

  extract: a single-column result is returned as the column value rather
    than as {column: value}
  unwrap: a single-row result is returned as the row rather than as a
    one-element array

Both are on for token URIs, whose statement always yields one column and at
most one row.
"""

from enum import Enum

from .utils.core_utils import urlquote, urlunquote, urlsplit, DEFAULT_GATEWAY_HOSTS

QUERY_PATH = "/api/v1/query"
STATEMENT_PARAM = "statement"


class StatementEncodingError (ValueError):
    pass


class NetworkMode (str, Enum):
    LOCAL_DEVELOPMENT = "localhost"
    PUBLIC_TESTNET = "testnets"
    PRODUCTION_MAINNET = "mainnet"


def gateway_base_uri(host, extract=True, unwrap=True, statement_param=STATEMENT_PARAM):
    """Compose the base URI for a gateway host, e.g. 'https://tableland.network'."""
    return "%s%s?extract=%s&unwrap=%s&%s=" % (
        host.rstrip('/'),
        QUERY_PATH,
        'true' if extract else 'false',
        'true' if unwrap else 'false',
        statement_param,
    )


def base_uris_for_hosts(hosts):
    """Map each network mode to the base URI of its host."""
    return {NetworkMode(mode): gateway_base_uri(host) for mode, host in hosts.items()}


DEFAULT_GATEWAY_URIS = base_uris_for_hosts(DEFAULT_GATEWAY_HOSTS)


def encode_statement(statement):
    try:
        return urlquote(statement)
    except (UnicodeError, TypeError, AttributeError) as e:
        raise StatementEncodingError("Statement cannot be percent-encoded: %r" % (statement,)) from e


def build_uri(statement, network_mode, gateway_uris=DEFAULT_GATEWAY_URIS):
    """Return the absolute URI whose dereference executes statement.

    :param statement: the SQL statement
    :param network_mode: a NetworkMode (or its string value)
    :param gateway_uris: mapping of NetworkMode to base URI
    """
    mode = NetworkMode(network_mode)
    try:
        base = gateway_uris[mode]
    except KeyError:
        raise ValueError("No gateway base URI configured for network mode '%s'" % mode.value)
    return base + encode_statement(statement)


def statement_from_uri(uri, statement_param=STATEMENT_PARAM):
    """Recover the statement carried by a gateway URI."""
    for param in urlsplit(uri).query.split('&'):
        name, sep, value = param.partition('=')
        if sep and name == statement_param:
            return urlunquote(value, errors='strict')
    raise ValueError("URI has no '%s' parameter: %s" % (statement_param, uri))
