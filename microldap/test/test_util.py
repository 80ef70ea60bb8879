from OpenSSL import SSL
from twisted.internet.endpoints import TCP4ClientEndpoint
from twisted.internet.interfaces import IOpenSSLClientConnectionCreator
from twisted.internet.task import Clock
from twisted.test.proto_helpers import MemoryReactorClock
from twisted.trial import unittest

from microldap.client import MicroLDAP
from microldap.options import TLSTrust
from microldap.util import DisabledVerificationClientTLSOptions, creator_for_trust


class TestCreatorForTrust(unittest.SynchronousTestCase):
    def test_verification_disabled(self):
        creator = creator_for_trust('ldap.test.local', TLSTrust(reject_unauthorized=False, ca=None))
        self.assertIsInstance(creator, DisabledVerificationClientTLSOptions)
        self.assertTrue(IOpenSSLClientConnectionCreator.providedBy(creator))

    def test_verification_disabled_ignores_ca(self):
        creator = creator_for_trust('ldap.test.local', TLSTrust(reject_unauthorized=False, ca=('garbage',)))
        self.assertIsInstance(creator, DisabledVerificationClientTLSOptions)

    def test_verification_disabled_creates_connection(self):
        creator = creator_for_trust('ldap.test.local', TLSTrust(reject_unauthorized=False, ca=None))
        connection = creator.clientConnectionForTLS(object())
        self.assertIsInstance(connection, SSL.Connection)
        self.assertEqual(connection.get_context().get_verify_mode(), SSL.VERIFY_NONE)

    def test_verification_disabled_ip_address(self):
        creator = creator_for_trust('127.0.0.1', TLSTrust(reject_unauthorized=False, ca=None))
        self.assertIsInstance(creator.clientConnectionForTLS(object()), SSL.Connection)

    def test_platform_trust(self):
        creator = creator_for_trust('ldap.test.local', TLSTrust(reject_unauthorized=True, ca=None))
        self.assertTrue(IOpenSSLClientConnectionCreator.providedBy(creator))
        self.assertNotIsInstance(creator, DisabledVerificationClientTLSOptions)


class TestEndpoint(unittest.SynchronousTestCase):
    def test_ldap_endpoint(self):
        ldap = MicroLDAP({'url': 'ldap://ldap.test.local:1389'}, Clock())
        endpoint = ldap.endpoint()
        self.assertIsInstance(endpoint, TCP4ClientEndpoint)
        self.assertEqual(endpoint._host, 'ldap.test.local')
        self.assertEqual(endpoint._port, 1389)

    def test_ldap_default_port(self):
        endpoint = MicroLDAP({'url': 'ldap://ldap.test.local'}, Clock()).endpoint()
        self.assertEqual(endpoint._port, 389)

    def test_ldap_default_host(self):
        endpoint = MicroLDAP({'url': 'ldap://'}, Clock()).endpoint()
        self.assertEqual(endpoint._host, 'localhost')
        self.assertEqual(endpoint._port, 389)

    def test_ldaps_endpoint_is_wrapped(self):
        ldap = MicroLDAP({'url': 'ldaps://ldap.test.local', 'reject_unauthorized': False}, Clock())
        endpoint = ldap.endpoint()
        self.assertNotIsInstance(endpoint, TCP4ClientEndpoint)

    def test_ldaps_without_verification_connects(self):
        reactor = MemoryReactorClock()
        ldap = MicroLDAP({'url': 'ldaps://ldap.test.local', 'reject_unauthorized': False}, reactor)
        d = ldap.bind('cn=alice,dc=test,dc=local', 'secret')
        self.assertNoResult(d)
        self.assertEqual(len(reactor.tcpClients), 1)
        host, port = reactor.tcpClients[0][:2]
        self.assertEqual((host, port), ('ldap.test.local', 636))
