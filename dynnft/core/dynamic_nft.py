import logging
import threading

from .sql_helpers import check_int
from .table_registry import TableRegistry
from .managed_tables import CatalogTable, InstanceTable
from .query_synthesizer import QuerySynthesizer, DEFAULT_TEMPLATE
from .uri_builder import build_uri, NetworkMode, DEFAULT_GATEWAY_URIS

logger = logging.getLogger(__name__)


class DynamicNFTError (Exception):
    pass


class NotInitializedError (DynamicNFTError):
    pass


class AlreadyInitializedError (DynamicNFTError):
    pass


class UnknownTokenError (DynamicNFTError):
    pass


class DynamicNFT (object):
    """Token collection whose metadata is computed from table state.

    Each minted token owns one row in the instance table pointing at a catalog
    row (its stage). The token URI is a gateway query joining the two tables,
    so changing a token's stage changes its metadata without rewriting any
    stored document.

    Example:
        >>> nft = DynamicNFT(SqliteTableStore(), 31337)
        >>> nft.init_tables(default_seed_rows())
        >>> token_id = nft.mint("0xabc")
        >>> nft.token_uri(token_id)
    """

    def __init__(self,
                 store,
                 network_id,
                 network_mode=NetworkMode.LOCAL_DEVELOPMENT,
                 gateway_uris=DEFAULT_GATEWAY_URIS,
                 template=DEFAULT_TEMPLATE,
                 first_token_id=1):
        """Create the collection bound to a table store.

        :param store: the TableStore hosting both tables
        :param network_id: chain id used in remote table names
        :param network_mode: NetworkMode selecting the gateway base URI
        :param gateway_uris: mapping of NetworkMode to gateway base URI
        :param template: MetadataTemplate for the synthesized statement
        :param first_token_id: id assigned by the first mint
        """
        self.store = store
        self.network_id = check_int(network_id, "network id")
        self.network_mode = NetworkMode(network_mode)
        self.gateway_uris = gateway_uris
        self.template = template
        self.registry = TableRegistry()
        self.synthesizer = QuerySynthesizer(self.registry, template)
        self.catalog = None
        self.instances = None
        self._next_token_id = check_int(first_token_id, "first token id")
        self._owners = {}
        self._lock = threading.Lock()

    @property
    def initialized(self):
        return self.instances is not None

    def _check_initialized(self):
        if not self.initialized:
            raise NotInitializedError("Tables have not been initialized")

    def init_tables(self, rows):
        """Create and seed the catalog table, then create the instance table.

        Must succeed exactly once, before any mint or metadata request. On
        failure nothing is bound and the call may be retried; tables the
        store already created are left unused.
        """
        if self.initialized:
            raise AlreadyInitializedError("Tables are already initialized: %s" %
                                          ", ".join(b.remote_name for b in self.registry))
        registry = TableRegistry()
        catalog = CatalogTable.create(self.store, registry, self.network_id, rows,
                                      prefix=self.template.catalog_table)
        instances = InstanceTable.create(self.store, registry, self.network_id,
                                         prefix=self.template.instance_table)
        self.registry = registry
        self.synthesizer = QuerySynthesizer(registry, self.template)
        self.catalog = catalog
        self.instances = instances
        logger.info("Initialized tables %s and %s", catalog.name, instances.name)
        return registry

    def mint(self, owner):
        """Mint a token to owner at the first catalog stage and return its id."""
        self._check_initialized()
        with self._lock:
            token_id = self._next_token_id
            self.instances.insert(token_id, self.catalog.keys[0])
            self._next_token_id += 1
            self._owners[token_id] = owner
        logger.info("Minted token %d to %s", token_id, owner)
        return token_id

    def owner_of(self, token_id):
        try:
            return self._owners[token_id]
        except KeyError:
            raise UnknownTokenError("Unknown token id: %s" % token_id)

    @property
    def token_ids(self):
        return sorted(self._owners)

    def statement(self, token_id):
        self._check_initialized()
        return self.synthesizer.synthesize(token_id)

    def token_uri(self, token_id):
        """Return the gateway URI computing the token's current metadata."""
        return build_uri(self.statement(token_id), self.network_mode, self.gateway_uris)

    def metadata(self, token_id):
        """Resolve the token's metadata against the bound store.

        Returns None when no row matches, e.g. a dangling catalog key.
        """
        return self.store.read(self.statement(token_id), extract=True, unwrap=True)

    def set_stage(self, token_id, catalog_key):
        self._check_initialized()
        self.instances.update(token_id, catalog_key)
        logger.info("Token %d set to stage %d", token_id, catalog_key)

    def stage(self, token_id):
        self._check_initialized()
        return self.instances.catalog_key(token_id)

    def grow(self, token_id):
        """Advance a token to the next catalog stage and return its stage.

        A token at the last stage is left unchanged.
        """
        current = self.stage(token_id)
        if current is None:
            raise UnknownTokenError("Unknown token id: %s" % token_id)
        following = [key for key in self.catalog.keys if key > current]
        if not following:
            logger.debug("Token %d is fully grown", token_id)
            return current
        self.set_stage(token_id, following[0])
        return following[0]

    def grow_all(self):
        """Advance every minted token one stage; returns a dict of token id to stage."""
        return {token_id: self.grow(token_id) for token_id in self.token_ids}
