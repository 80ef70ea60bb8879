from twisted.python.filepath import FilePath
from twisted.trial import unittest

from microldap.client import MicroLDAP
from microldap.test.mock import MockConnector

MINIMAL_CA = '-BEGIN CERTIFICATE-abcd-END CERTIFICATE-'


class MicroLDAPTestCase(unittest.SynchronousTestCase):
    """
    Test case with a ``MicroLDAP`` instance whose connections are simulated by a ``MockConnector``.
    """
    options = {
        'url': 'ldap://ldap.test.local',
    }

    def setUp(self):
        self.ldap = MicroLDAP(self.options)
        self.connector = MockConnector()
        self.ldap.connect = self.connector

    def write_file(self, content):
        """
        Write *content* to a new temporary file and return its path.
        """
        path = FilePath(self.mktemp())
        if isinstance(content, str):
            content = content.encode('utf-8')
        path.setContent(content)
        return path.path
