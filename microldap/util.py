from OpenSSL import SSL
from twisted.internet.abstract import isIPAddress, isIPv6Address
from twisted.internet.interfaces import IOpenSSLClientConnectionCreator
from twisted.internet.ssl import Certificate, CertificateOptions, optionsForClientTLS, trustRootFromCertificates
from twisted.logger import Logger
from zope.interface import implementer

log = Logger()


@implementer(IOpenSSLClientConnectionCreator)
class DisabledVerificationClientTLSOptions(object):
    """
    Client connection creator that does not validate the server certificate at all, i.e.
    neither checks if the certificate matches the hostname nor the certificate's trust chain.
    The hostname is only sent as SNI.
    """
    def __init__(self, hostname, context):
        """
        :param hostname: server hostname as a string
        :param context: ``OpenSSL.SSL.Context`` which does not verify the peer
        """
        self._hostname = hostname
        self._context = context

    def clientConnectionForTLS(self, tlsProtocol):
        connection = SSL.Connection(self._context, None)
        connection.set_app_data(tlsProtocol)
        if not (isIPAddress(self._hostname) or isIPv6Address(self._hostname)):
            connection.set_tlsext_host_name(self._hostname.encode('idna'))
        return connection


def load_trust_root(ca):
    """
    Parse the PEM blocks of a CA bundle and turn them into a trust root.
    :param ca: sequence of PEM certificate blocks (strings)
    :return: an ``IOpenSSLTrustRoot`` provider
    """
    certificates = [Certificate.loadPEM(block.encode('ascii')) for block in ca]
    return trustRootFromCertificates(certificates)


def creator_for_trust(hostname, tls):
    """
    Build the client TLS connection creator for a connection to *hostname*.
    :param hostname: server hostname as a string
    :param tls: ``TLSTrust`` instance
    :return: an ``IOpenSSLClientConnectionCreator`` provider
    """
    if not tls.reject_unauthorized:
        log.warn('TLS certificate of {hostname!r} will NOT be checked!', hostname=hostname)
        certificate_options = CertificateOptions(verify=False)
        return DisabledVerificationClientTLSOptions(hostname, certificate_options.getContext())
    if tls.ca is not None:
        log.debug('TLS certificate of {hostname!r} will be checked against {count} CA certificate(s)',
                  hostname=hostname, count=len(tls.ca))
        return optionsForClientTLS(hostname, trustRoot=load_trust_root(tls.ca))
    log.debug('TLS certificate of {hostname!r} will be checked against the system certificate store',
              hostname=hostname)
    return optionsForClientTLS(hostname)
