import logging
import requests

from .utils.core_utils import get_new_requests_session, split_uri, NotModified, DEFAULT_HEADERS, \
    DEFAULT_SESSION_CONFIG
from .uri_builder import QUERY_PATH, STATEMENT_PARAM, encode_statement

logger = logging.getLogger(__name__)


class GatewayPathError (ValueError):
    pass


def _response_raise_for_status(self):
    """Raises requests.HTTPError if status code indicates an error.

    This unbound method can be monkey-patched onto a requests.Response
    instance or manually invoked on one.

    """
    if 400 <= self.status_code < 600:
        details = " Details: %s"
        raise requests.HTTPError(
            u'%s %s Error: %s for url: [%s]%s' % (
                self.status_code,
                'Client' if self.status_code < 500 else 'Server',
                self.reason,
                self.url,
                details % self.content if self.content else "",
            ),
            response=self
        )


class GatewayBinding (object):
    """HTTP(S) binding to a table store gateway."""

    def __init__(self, scheme, server, caching=True, session_config=None):
        """Create HTTP(S) gateway binding.

           Arguments:
             scheme: 'http' or 'https'
             server: server host[:port] string
             caching: whether to retain a GET response cache
             session_config: timeout and retry settings for the session
        """
        self.scheme = scheme
        self.server = server
        self._server_uri = "%s://%s" % (
            scheme,
            server
        )

        self.session_config = DEFAULT_SESSION_CONFIG if not session_config else session_config
        self._session = None
        self._get_new_session(self.session_config)

        self._caching = caching
        self._cache = {}

    @classmethod
    def for_uri(cls, uri, caching=True, session_config=None):
        """Return a binding for the server of an absolute URI, and the URI's rooted path."""
        scheme, server, _, path = split_uri(uri)
        return cls(scheme, server, caching, session_config), path

    def get_server_uri(self):
        return self._server_uri

    def _get_new_session(self, session_config=None):
        self._close_session()
        self._session = get_new_requests_session(self._server_uri + '/',
                                                 session_config if session_config else self.session_config)
        # allow loopback requests to bypass SSL cert verification
        if "https://localhost" in self._server_uri:
            self._session.verify = False

    @staticmethod
    def check_path(path):
        if not path:
            raise GatewayPathError("Path not specified")

        if not path.startswith("/"):
            raise GatewayPathError("Malformed path error (not rooted with \"/\"): %s" % path)

    def _pre_get(self, path, headers):
        self.check_path(path)
        url = self._server_uri + path
        headers = headers.copy()
        prev_response = self._cache.get(url)
        if prev_response and 'etag' in prev_response.headers \
           and not ('if-none-match' in headers or 'if-match' in headers):
            headers['if-none-match'] = prev_response.headers['etag']
        else:
            prev_response = None
        return url, headers, prev_response

    @staticmethod
    def _raise_for_status_304(r, p, raise_not_modified):
        if r.status_code == 304:
            if raise_not_modified:
                raise NotModified(p or r)
            else:
                return p or r

        _response_raise_for_status(r)
        setattr(r, 'raise_for_status', _response_raise_for_status.__get__(r))
        return r

    def get(self, path, headers=DEFAULT_HEADERS, raise_not_modified=False):
        """Perform GET request, returning response object.

           Arguments:
             path: the rooted path (and query) within this bound server
             headers: headers to set in request
             raise_not_modified: raise NotModified for 304 response
               status when true.

           May consult built-in cache and apply 'if-none-match'
           request header unless input headers already include
           'if-none-match' or 'if-match'. On cache hit, returns cached
           response unless raise_not_modified=true.

        """
        if headers is None:
            headers = {}
        url, headers, prev_response = self._pre_get(path, headers)
        r = self._raise_for_status_304(
            self._session.get(url, headers=headers),
            prev_response,
            raise_not_modified
        )
        if self._caching:
            self._cache[url] = r
        return r

    def _close_session(self):
        if self._session is not None:
            self._session.close()
            self._session = None

    def __del__(self):
        self._close_session()


class GatewayClient (GatewayBinding):
    """Read client for the query endpoint of a table store gateway."""

    def query_path(self, statement, extract=True, unwrap=True):
        return "%s?extract=%s&unwrap=%s&%s=%s" % (
            QUERY_PATH,
            'true' if extract else 'false',
            'true' if unwrap else 'false',
            STATEMENT_PARAM,
            encode_statement(statement),
        )

    def read(self, statement, extract=True, unwrap=True):
        """Execute a read statement on the gateway and return the decoded JSON result.

           An unwrapped query matching no rows is answered with 404 by the
           gateway; it is returned here as None.
        """
        return get_json(self, self.query_path(statement, extract, unwrap))


def get_json(binding, path):
    try:
        r = binding.get(path)
    except requests.HTTPError as e:
        if e.response is not None and e.response.status_code == requests.codes.not_found:
            logger.debug("No result for %s%s", binding.get_server_uri(), path)
            return None
        raise
    return r.json()


def fetch_metadata(uri, session_config=None):
    """Dereference a token URI and return its metadata document, or None when no row matches.

       None means the metadata is temporarily unavailable, e.g. a token whose
       catalog key has no catalog entry.
    """
    binding, path = GatewayBinding.for_uri(uri, caching=False, session_config=session_config)
    try:
        return get_json(binding, path)
    finally:
        binding._close_session()
