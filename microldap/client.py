from urllib.parse import urlsplit

from ldaptor import ldapfilter
from ldaptor.protocols import pureldap
from ldaptor.protocols.ldap import ldaperrors
from ldaptor.protocols.ldap.ldapclient import LDAPClient, LDAPClientConnectionLostException
from twisted.internet import defer, error
from twisted.internet.endpoints import clientFromString, connectProtocol, quoteStringArgument, wrapClientTLS
from twisted.logger import Logger

from microldap.errors import InvalidArgument, LDAPConnectionError, AuthenticationError, SearchError, \
    SearchStatusError
from microldap.options import build_options
from microldap.util import creator_for_trust

log = Logger()

DEFAULT_HOST = 'localhost'
DEFAULT_LDAP_PORT = 389
DEFAULT_LDAPS_PORT = 636

SEARCH_SCOPES = {
    'base': pureldap.LDAP_SCOPE_baseObject,
    'baseobject': pureldap.LDAP_SCOPE_baseObject,
    'one': pureldap.LDAP_SCOPE_singleLevel,
    'onelevel': pureldap.LDAP_SCOPE_singleLevel,
    'singlelevel': pureldap.LDAP_SCOPE_singleLevel,
    'sub': pureldap.LDAP_SCOPE_wholeSubtree,
    'subtree': pureldap.LDAP_SCOPE_wholeSubtree,
    'wholesubtree': pureldap.LDAP_SCOPE_wholeSubtree,
}


def resolve_scope(scope):
    """
    Translate a search scope given by name (e.g. ``sub``) or as an ldaptor constant
    into the ldaptor constant.
    :raises ValueError: if the scope is unknown
    """
    if isinstance(scope, int):
        if scope in SEARCH_SCOPES.values():
            return scope
    elif isinstance(scope, str) and scope.lower() in SEARCH_SCOPES:
        return SEARCH_SCOPES[scope.lower()]
    raise ValueError('Unknown search scope: {!r}'.format(scope))


def is_missing(value):
    if value is None:
        return True
    try:
        return len(value) == 0
    except TypeError:
        return False


def check_arguments(*arguments):
    """
    Given ``(name, value)`` pairs, return a failed Deferred for the first missing value, or None.
    """
    for name, value in arguments:
        if is_missing(value):
            return defer.fail(InvalidArgument("'{}' option must be passed".format(name)))
    return None


class SearchResultCollector(object):
    """
    Collects the responses to a single LDAP search request. ``deferred`` fires with the list
    of ``LDAPSearchResultEntry`` objects (in the order they were received) once the search is done,
    or fails with ``SearchStatusError`` if the search ended with a non-zero result code.
    """
    def __init__(self):
        self.entries = []
        self.deferred = defer.Deferred()

    def handle_response(self, response):
        """
        Called by ldaptor for each response to the search request.
        :param response: a ``pureldap.LDAPProtocolResponse``
        :return: True if the search is complete, False otherwise
        """
        if isinstance(response, pureldap.LDAPSearchResultEntry):
            log.debug('Received search entry {dn!r}', dn=response.objectName)
            self.entries.append(response)
            return False
        elif isinstance(response, pureldap.LDAPSearchResultReference):
            log.info('Ignoring LDAP SEARCH result reference ...')
            return False
        elif isinstance(response, pureldap.LDAPSearchResultDone):
            log.debug('Search done with result code {code!r}, {count} entries',
                      code=response.resultCode, count=len(self.entries))
            if response.resultCode == ldaperrors.Success.resultCode:
                self.deferred.callback(self.entries)
            else:
                self.deferred.errback(SearchStatusError(response.resultCode, response))
            return True
        else:
            log.warn('Unexpected {class_!r} in search response, ignoring.', class_=response.__class__.__name__)
            return False

    def connection_lost(self, failure):
        """
        Errback of the ldaptor request, which fails if the connection is lost before the search is done.
        """
        if not self.deferred.called:
            self.deferred.errback(SearchError('Connection lost during search', failure.value))


class MicroLDAP(object):
    """
    Performs binds and searches against a single LDAP server. Every operation uses its own
    connection, which is closed before the operation's Deferred fires.
    """
    def __init__(self, opts, reactor=None):
        """
        :param opts: dictionary with the keys ``url``, ``reject_unauthorized`` and ``ca``,
            see ``microldap.options.build_options``
        :param reactor: reactor used for outgoing connections, defaults to the global reactor
        :raises ConfigurationError: if the options are invalid
        """
        if reactor is None:
            from twisted.internet import reactor
        self.reactor = reactor
        self.options = build_options(opts)

    def endpoint(self):
        """
        Construct the client endpoint for ``options.url``. ``ldaps://`` URLs are wrapped in TLS
        according to ``options.tls``.
        :return: an ``IStreamClientEndpoint`` provider
        """
        parts = urlsplit(self.options.url)
        secure = parts.scheme.lower() == 'ldaps'
        host = parts.hostname or DEFAULT_HOST
        port = parts.port or (DEFAULT_LDAPS_PORT if secure else DEFAULT_LDAP_PORT)
        endpoint = clientFromString(self.reactor, 'tcp:host={}:port={}'.format(quoteStringArgument(host), port))
        if secure:
            endpoint = wrapClientTLS(creator_for_trust(host, self.options.tls), endpoint)
        return endpoint

    def connect(self):
        """
        Open a new connection to the LDAP server.
        :return: A Deferred that fires a connected `LDAPClient` instance
        """
        return connectProtocol(self.endpoint(), LDAPClient())

    def release(self, client):
        """
        Close the connection of *client*, unbinding first if it is still connected.
        """
        if client.connected:
            log.debug('Unbinding and closing connection to {url!r}', url=self.options.url)
            client.unbind()
        else:
            log.debug('Connection to {url!r} is already closed', url=self.options.url)

    @defer.inlineCallbacks
    def _session(self, username, password, operation=None):
        """
        Connect, bind as *username* and, if the bind succeeded, invoke *operation*.
        The connection is released in any case once it has been established.
        :param operation: None or a function accepting the bound client and returning a Deferred
        :return: A Deferred that fires the result of *operation* (or None)
        """
        try:
            client = yield self.connect()
        except defer.CancelledError:
            raise
        except Exception as e:
            log.info('Could not connect to {url!r}: {e!r}', url=self.options.url, e=e)
            raise LDAPConnectionError('Could not connect to {}'.format(self.options.url), e) from e
        log.debug('Connected to {url!r}', url=self.options.url)
        try:
            try:
                yield client.bind(username, password)
            except defer.CancelledError:
                raise
            except (LDAPClientConnectionLostException, error.ConnectionClosed) as e:
                log.info('Connection to {url!r} lost during bind: {e!r}', url=self.options.url, e=e)
                raise LDAPConnectionError('Connection to {} lost during bind'.format(self.options.url), e) from e
            except Exception as e:
                log.info('Bind as {username!r} failed: {e!r}', username=username, e=e)
                raise AuthenticationError('Could not bind as {!r}'.format(username), e) from e
            log.debug('Bind as {username!r} succeeded', username=username)
            result = None
            if operation is not None:
                result = yield operation(client)
            return result
        finally:
            self.release(client)

    def _search(self, client, base, filter, attributes, scope):
        """
        Send the search request using the bound *client*.
        :return: A Deferred that fires the list of search result entries
        :raises SearchError: if the search request could not be sent
        """
        if isinstance(attributes, str):
            attributes = [attributes]
        try:
            request = pureldap.LDAPSearchRequest(
                baseObject=base,
                scope=resolve_scope(scope),
                derefAliases=pureldap.LDAP_DEREF_neverDerefAliases,
                sizeLimit=0,
                timeLimit=0,
                typesOnly=0,
                filter=ldapfilter.parseFilter(filter),
                attributes=list(attributes))
            collector = SearchResultCollector()
            d = client.send_multiResponse(request, collector.handle_response)
        except (ldapfilter.InvalidLDAPFilter, LDAPClientConnectionLostException, ValueError) as e:
            log.info('Could not search below {base!r}: {e!r}', base=base, e=e)
            raise SearchError('Could not search below {!r}'.format(base), e) from e
        d.addErrback(collector.connection_lost)
        return collector.deferred

    def bind(self, username=None, password=None):
        """
        Check whether *username* can bind using *password*.
        :param username: DN (or other bind name accepted by the server)
        :param password: password
        :return: A Deferred that fires None on success. Otherwise, it fails with
            ``InvalidArgument``, ``LDAPConnectionError`` or ``AuthenticationError``.
        """
        log.debug('bind({username!r}, ***)', username=username)
        failed = check_arguments(('username', username), ('password', password))
        if failed is not None:
            return failed
        return self._session(username, password)

    def search(self, base=None, filter=None, attributes=None, scope=None, username=None, password=None):
        """
        Bind as *username* and search the directory.
        :param base: base DN of the search
        :param filter: search filter as a string, e.g. ``(cn=*)``
        :param attributes: list of attribute names to retrieve
        :param scope: ``base``, ``one`` or ``sub`` (or the corresponding ldaptor constant)
        :param username: bind DN
        :param password: bind password
        :return: A Deferred that fires a list of ``LDAPSearchResultEntry`` objects. Otherwise, it
            fails with ``InvalidArgument``, ``LDAPConnectionError``, ``AuthenticationError``,
            ``SearchError`` or ``SearchStatusError``.
        """
        log.debug('search({base!r}, {filter!r}, {attributes!r}, {scope!r}, {username!r}, ***)',
                  base=base, filter=filter, attributes=attributes, scope=scope, username=username)
        failed = check_arguments(('base', base), ('filter', filter), ('attributes', attributes),
                                 ('scope', scope), ('username', username), ('password', password))
        if failed is not None:
            return failed
        return self._session(username, password,
                             lambda client: self._search(client, base, filter, attributes, scope))
