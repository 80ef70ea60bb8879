from microldap.client import MicroLDAP
from microldap.errors import MicroLDAPError, ConfigurationError, CertificateBundleError, InvalidArgument, \
    LDAPConnectionError, AuthenticationError, SearchError, SearchStatusError

__all__ = [
    'micro_ldap', 'MicroLDAP',
    'MicroLDAPError', 'ConfigurationError', 'CertificateBundleError', 'InvalidArgument',
    'LDAPConnectionError', 'AuthenticationError', 'SearchError', 'SearchStatusError',
]


def micro_ldap(opts):
    """
    Create a ``MicroLDAP`` instance for the given options.
    :param opts: dictionary with the keys ``url``, ``reject_unauthorized`` and ``ca``
    :return: ``MicroLDAP`` instance
    """
    return MicroLDAP(opts)
