__version__ = "0.1.0"

from dynnft.core.utils.core_utils import *
from dynnft.core.base_cli import BaseCLI
from dynnft.core.table_registry import TableRegistry, TableBinding, TableBindingError
from dynnft.core.table_store import TableStore, SqliteTableStore, CreateTableResult, TableStoreError, \
    TableCreationError, DuplicateRowError, MissingRowError
from dynnft.core.managed_tables import CatalogRow, CatalogTable, InstanceTable
from dynnft.core.query_synthesizer import synthesize, QuerySynthesizer, MetadataTemplate, DEFAULT_TEMPLATE
from dynnft.core.uri_builder import build_uri, statement_from_uri, gateway_base_uri, base_uris_for_hosts, \
    NetworkMode, StatementEncodingError, DEFAULT_GATEWAY_URIS
from dynnft.core.gateway_binding import GatewayBinding, GatewayClient, GatewayPathError, fetch_metadata
from dynnft.core.dynamic_nft import DynamicNFT, DynamicNFTError, NotInitializedError, AlreadyInitializedError, \
    UnknownTokenError
