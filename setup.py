# -*- coding: utf-8 -*-

import sys
import os
from setuptools import setup

package_directory = os.path.dirname(os.path.abspath(__file__))


def get_file_contents(file_path):
    """Get the context of the file using full path name."""
    content = ""
    try:
        full_path = os.path.join(package_directory, file_path)
        with open(full_path, 'r') as f:
            content = f.read()
    except IOError:
        print("### could not open file {0!r}".format(file_path), file=sys.stderr)
    return content


setup(name='microldap',
      version='0.1',
      description='Minimal asynchronous LDAP bind and search based on Twisted and ldaptor',
      packages=['microldap', 'microldap.test'],
      python_requires='>=3.8',
      install_requires=['ldaptor',
                        'Twisted',
                        'configobj',
                        'pyOpenSSL',
                        'service_identity',
                        'zope.interface'],
      entry_points={
          'console_scripts': [
              'microldap = microldap.cli:main',
          ],
      },
      long_description=get_file_contents('README.md'),
      long_description_content_type='text/markdown',
      classifiers=[
          "Framework :: Twisted",
          "Intended Audience :: Developers",
          "Intended Audience :: System Administrators",
          "Development Status :: 4 - Beta",
          "Topic :: Internet",
          "Topic :: System :: Systems Administration :: Authentication/Directory",
          "Topic :: System :: Systems Administration :: Authentication/Directory :: LDAP",
          "Programming Language :: Python",
          "Programming Language :: Python :: 3",
      ]
      )
