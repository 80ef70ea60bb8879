class MicroLDAPError(Exception):
    pass


class ConfigurationError(MicroLDAPError):
    pass


class CertificateBundleError(ConfigurationError):
    pass


class InvalidArgument(MicroLDAPError, ValueError):
    pass


class OperationError(MicroLDAPError):
    """
    Base class for errors of a bind or search operation. If the error was caused by
    an underlying exception (e.g. an ldaptor error), it is available as ``reason``.
    """
    def __init__(self, message, reason=None):
        MicroLDAPError.__init__(self, message)
        self.reason = reason


class LDAPConnectionError(OperationError):
    pass


class AuthenticationError(OperationError):
    pass


class SearchError(OperationError):
    pass


class SearchStatusError(SearchError):
    """
    The search ended with a non-zero result code.
    ``status`` holds the result code, ``result`` the raw ``LDAPSearchResultDone``.
    """
    def __init__(self, status, result):
        SearchError.__init__(self, 'LDAP search ended with non-0 status: {!r}'.format(status))
        self.status = status
        self.result = result
