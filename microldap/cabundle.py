from twisted.logger import Logger
from twisted.python.filepath import FilePath

from microldap.errors import CertificateBundleError

log = Logger()

BEGIN_MARKER = '-BEGIN CERTIFICATE-'
END_MARKER = '-END CERTIFICATE-'


def split_ca_bundle(path, encoding='utf-8'):
    """
    Read the CA bundle stored at *path* and split it into its PEM certificate blocks.
    Anything outside of BEGIN/END CERTIFICATE markers (e.g. private keys or comments) is skipped.
    The blocks are not parsed here, this happens once a TLS connection is set up.
    :param path: filesystem path as a string
    :param encoding: encoding of the bundle file
    :return: a list of strings, one per certificate block
    """
    try:
        chain = FilePath(path).getContent().decode(encoding)
    except UnicodeDecodeError as e:
        raise CertificateBundleError("File is not a {} encoded PEM bundle".format(encoding)) from e
    if BEGIN_MARKER not in chain or END_MARKER not in chain:
        raise CertificateBundleError("File does not contain 'BEGIN CERTIFICATE' or 'END CERTIFICATE'")
    blocks = []
    current = None
    for line in chain.splitlines():
        if not line.strip():
            continue
        if BEGIN_MARKER in line:
            current = []
        if current is not None:
            current.append(line)
            if END_MARKER in line:
                blocks.append('\n'.join(current))
                current = None
    if not blocks:
        raise CertificateBundleError("File does not contain a complete BEGIN/END CERTIFICATE block")
    log.debug('Read {count} certificate block(s) from {path!r}', count=len(blocks), path=path)
    return blocks
