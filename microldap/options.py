import re
from collections import namedtuple

from twisted.logger import Logger
from twisted.python.filepath import FilePath

from microldap.cabundle import split_ca_bundle
from microldap.errors import ConfigurationError

log = Logger()

URL_PATTERN = re.compile(r'^ldaps?://', re.IGNORECASE)

#: TLS trust settings: ``reject_unauthorized`` enables certificate validation,
#: ``ca`` is None or a tuple of PEM certificate blocks used as trust root.
TLSTrust = namedtuple('TLSTrust', ['reject_unauthorized', 'ca'])

Options = namedtuple('Options', ['url', 'tls'])


def _lookup(opts, *keys):
    """
    Return the value of the first key of *keys* which is present in *opts*, or None.
    """
    for key in keys:
        if key in opts:
            return opts[key]
    return None


def build_options(opts):
    """
    Validate the user-supplied options and construct the immutable connection options.
    :param opts: dictionary with the keys ``url`` (required), ``reject_unauthorized`` and ``ca``
    :return: an ``Options`` instance
    :raises ConfigurationError: if the options are invalid
    """
    if opts is None:
        raise ConfigurationError('options object must be passed')
    url = opts.get('url')
    if not url:
        raise ConfigurationError("'url' must be included in options")
    if not URL_PATTERN.match(url):
        raise ConfigurationError("'url' must be of ldap(s):// form")

    # Certificate validation may only be disabled explicitly, an omitted value keeps it enabled
    reject_unauthorized = _lookup(opts, 'reject_unauthorized', 'rejectUnauthorized')
    if reject_unauthorized is None:
        reject_unauthorized = True
    else:
        reject_unauthorized = bool(reject_unauthorized)

    ca = None
    ca_path = opts.get('ca')
    if ca_path:
        if not FilePath(ca_path).isfile():
            raise ConfigurationError("'ca' path must exist")
        ca = tuple(split_ca_bundle(ca_path))

    options = Options(url=url, tls=TLSTrust(reject_unauthorized=reject_unauthorized, ca=ca))
    log.debug('Options: url={url!r}, reject_unauthorized={reject!r}, {count} CA certificate(s)',
              url=options.url, reject=reject_unauthorized, count=len(ca) if ca else 0)
    return options
