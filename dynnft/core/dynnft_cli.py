import json
import logging
import sys
import traceback
import jsonschema
from requests.exceptions import HTTPError, ConnectionError
from dynnft.core import __version__ as VERSION, BaseCLI, DynamicNFT, DynamicNFTError, SqliteTableStore, \
    TableStoreError, TableRegistry, GatewayClient, MetadataTemplate, NetworkMode, synthesize, build_uri, \
    base_uris_for_hosts, fetch_metadata, read_config, format_exception, DEFAULT_CONFIG
from dynnft.core.catalog_seeds import load_seed_file, default_seed_rows
from dynnft.core.utils import eprint


class DynNFTCLIException (Exception):
    """Base exception class for DynNFTCLI.
    """
    def __init__(self, message):
        """Initializes the exception.
        """
        super(DynNFTCLIException, self).__init__(message)


class UsageException (DynNFTCLIException):
    """Usage exception.
    """
    def __init__(self, message):
        """Initializes the exception.
        """
        super(UsageException, self).__init__(message)


class DynNFTCLI (BaseCLI):
    """Dynamic NFT metadata Command-line Interface.
    """
    def __init__(self, description, epilog):
        """Initializes the CLI.
        """
        super(DynNFTCLI, self).__init__(description, epilog, VERSION)

        # initialized after argument parsing
        self.args = None
        self.config = None
        self.template = None
        self.gateway_uris = None

        self.parser.add_argument("-n", "--network", choices=[m.value for m in NetworkMode],
                                 help="network mode selecting the gateway (default from configuration)")
        self.parser.add_argument("--chain-id", metavar="<chain id>", type=int,
                                 help="chain id used in table names (default from configuration)")
        subparsers = self.parser.add_subparsers(title='sub-commands', dest='subcmd')

        def add_binding_args(p):
            p.add_argument("token_id", metavar="<token-id>", type=int, help="Token id")
            p.add_argument("--catalog-table-id", metavar="<id>", type=int, required=True,
                           help="Remote id of the catalog table")
            p.add_argument("--instance-table-id", metavar="<id>", type=int, required=True,
                           help="Remote id of the instance table")

        # statement parser
        statement_parser = subparsers.add_parser('statement', help="Print the metadata statement for a token.")
        add_binding_args(statement_parser)
        statement_parser.set_defaults(func=self.token_statement)

        # uri parser
        uri_parser = subparsers.add_parser('uri', help="Print the token URI for a token.")
        add_binding_args(uri_parser)
        uri_parser.set_defaults(func=self.token_uri)

        # metadata parser
        metadata_parser = subparsers.add_parser('metadata', help="Fetch the current metadata of a token.")
        add_binding_args(metadata_parser)
        metadata_parser.set_defaults(func=self.token_metadata)

        # query parser
        query_parser = subparsers.add_parser('query', help="Run a read statement on the gateway.")
        query_parser.add_argument("statement", metavar="<statement>", help="SQL select statement")
        query_parser.add_argument("--no-extract", action="store_true", help="Do not extract single column values")
        query_parser.add_argument("--no-unwrap", action="store_true", help="Do not unwrap single row results")
        query_parser.set_defaults(func=self.gateway_query)

        # demo parser
        demo_parser = subparsers.add_parser('demo', help="Initialize tables on a local store, mint and resolve.")
        demo_parser.add_argument("--seeds-file", metavar="<file>", help="Catalog seed document (JSON)")
        demo_parser.add_argument("--database", metavar="<file>", help="SQLite database file (default in memory)")
        demo_parser.add_argument("--owner", metavar="<address>", default="0x0000000000000000000000000000000000000000",
                                 help="Owner of the minted token")
        demo_parser.add_argument("--grow", metavar="<n>", type=int, default=0,
                                 help="Number of stages to advance the token after minting")
        demo_parser.set_defaults(func=self.demo)

    def _post_parser_init(self, args):
        """Shared initialization for all sub-commands.
        """
        self.config = read_config(args.config_file, default=DEFAULT_CONFIG)
        network = self.config.get("network", {})
        if args.network is None:
            args.network = network.get("mode", NetworkMode.LOCAL_DEVELOPMENT.value)
        if args.chain_id is None:
            args.chain_id = network.get("chain_id", DEFAULT_CONFIG["network"]["chain_id"])
        tables = self.config.get("tables", {})
        settings = dict(self.config.get("metadata", {}))
        settings.setdefault("catalog_table", tables.get("catalog_prefix", MetadataTemplate().catalog_table))
        settings.setdefault("instance_table", tables.get("instance_prefix", MetadataTemplate().instance_table))
        self.template = MetadataTemplate.from_config(settings)
        self.gateway_uris = base_uris_for_hosts(self.config.get("gateway", DEFAULT_CONFIG["gateway"]))
        self.args = args

    def _registry(self, args):
        registry = TableRegistry()
        registry.bind(self.template.catalog_table, args.chain_id, args.catalog_table_id)
        registry.bind(self.template.instance_table, args.chain_id, args.instance_table_id)
        return registry

    def _token_uri(self, args):
        return build_uri(synthesize(self._registry(args), args.token_id, self.template),
                         args.network, self.gateway_uris)

    def token_statement(self, args):
        print(synthesize(self._registry(args), args.token_id, self.template))

    def token_uri(self, args):
        print(self._token_uri(args))

    def token_metadata(self, args):
        uri = self._token_uri(args)
        logging.debug("Fetching %s" % uri)
        result = fetch_metadata(uri, session_config=self.config.get("session"))
        if result is None:
            raise UsageException("No metadata available for token %d" % args.token_id)
        print(json.dumps(result, indent=2))

    def gateway_query(self, args):
        host = self.config.get("gateway", DEFAULT_CONFIG["gateway"]).get(args.network)
        if not host:
            raise UsageException("No gateway host configured for network '%s'" % args.network)
        scheme, _, server = host.rstrip('/').partition("://")
        client = GatewayClient(scheme, server, session_config=self.config.get("session"))
        result = client.read(args.statement, extract=not args.no_extract, unwrap=not args.no_unwrap)
        print(json.dumps(result, indent=2))

    def demo(self, args):
        rows = load_seed_file(args.seeds_file) if args.seeds_file else default_seed_rows()
        with SqliteTableStore(args.database) as store:
            nft = DynamicNFT(store, args.chain_id, args.network, self.gateway_uris, self.template)
            registry = nft.init_tables(rows)
            for binding in registry:
                print("%s: %s" % (binding.logical_name, binding.remote_name))
            token_id = nft.mint(args.owner)
            for _ in range(args.grow):
                nft.grow(token_id)
            print(nft.token_uri(token_id))
            print(json.dumps(nft.metadata(token_id), indent=2))

    def main(self, argv=None):
        """Main routine of the CLI.
        """
        args = self.parse_cli(argv)

        try:
            if not hasattr(args, 'func'):
                self.parser.print_usage()
                return 1

            self._post_parser_init(args)
            args.func(args)
            return 0
        except UsageException as e:
            eprint("{prog} {subcmd}: {msg}".format(prog=self.parser.prog, subcmd=args.subcmd, msg=e))
        except ConnectionError as e:
            logging.debug(format_exception(e))
            eprint("{prog}: Connection error occurred".format(prog=self.parser.prog))
        except HTTPError as e:
            logging.debug(format_exception(e))
            eprint("{prog} {subcmd}: {msg}".format(prog=self.parser.prog, subcmd=args.subcmd, msg=e))
        except jsonschema.ValidationError as e:
            eprint("{prog} {subcmd}: Invalid seed document: {msg}".format(prog=self.parser.prog, subcmd=args.subcmd,
                                                                          msg=e.message))
        except OSError as e:
            eprint("{prog} {subcmd}: {msg}".format(prog=self.parser.prog, subcmd=args.subcmd,
                                                   msg=format_exception(e)))
        except (TableStoreError, DynamicNFTError, ValueError) as e:
            eprint("{prog} {subcmd}: {msg}".format(prog=self.parser.prog, subcmd=args.subcmd,
                                                   msg=format_exception(e)))
        except RuntimeError as e:
            logging.warning(format_exception(e))
            eprint('Unexpected runtime error occurred')
        except Exception:
            eprint('Unexpected error occurred')
            traceback.print_exc()
        return 1


def main(argv=None):
    DESC = "Dynamic NFT Metadata Command-Line Interface"
    INFO = "For more information see: https://github.com/informatics-isi-edu/dynnft"
    return DynNFTCLI(DESC, INFO).main(argv)


if __name__ == '__main__':
    sys.exit(main())
