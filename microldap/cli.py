import getpass
import sys

from twisted.internet import defer
from twisted.internet.task import react
from twisted.logger import globalLogBeginner, textFileLogObserver, FilteringLogObserver, \
    LogLevelFilterPredicate, LogLevel, Logger
from twisted.python import usage

from microldap.client import MicroLDAP
from microldap.config import load_config, options_from_config
from microldap.errors import MicroLDAPError

log = Logger()


class BindOptions(usage.Options):
    synopsis = '<username>'

    def parseArgs(self, username):
        self['username'] = username


class SearchOptions(usage.Options):
    synopsis = '<filter> <username>'
    optParameters = [
        ['base', 'b', None, 'Base DN of the search (default: [search] base)'],
        ['scope', 's', None, 'Search scope: base, one or sub (default: [search] scope)'],
        ['attributes', 'a', None, 'Comma-separated list of attributes (default: [search] attributes)'],
    ]

    def parseArgs(self, filter, username):
        self['filter'] = filter
        self['username'] = username

    def postOptions(self):
        if self['attributes'] is not None:
            self['attributes'] = [name.strip() for name in self['attributes'].split(',') if name.strip()]


class Options(usage.Options):
    #: The configuration file (which is mandatory) is passed as a parameter.
    optParameters = [
        ['config', 'c', None, 'Configuration file'],
        ['password', 'w', None, 'Bind password (prompted for if omitted)'],
    ]
    optFlags = [
        ['verbose', 'v', 'Log debug messages to stderr'],
    ]
    subCommands = [
        ['bind', None, BindOptions, 'Check the credentials of a user'],
        ['search', None, SearchOptions, 'Bind as a user and search the directory'],
    ]

    def postOptions(self):
        if self['config'] is None:
            raise usage.UsageError('You need to specify a configuration file via `microldap -c config.ini`.')
        if self.subCommand is None:
            raise usage.UsageError('Please specify a command: bind or search.')


def start_logging(verbose):
    level = LogLevel.debug if verbose else LogLevel.warn
    observer = FilteringLogObserver(textFileLogObserver(sys.stderr),
                                    [LogLevelFilterPredicate(defaultLogLevel=level)])
    globalLogBeginner.beginLoggingTo([observer], redirectStandardIO=False)


def _text(value):
    if isinstance(value, bytes):
        return value.decode('utf-8', 'replace')
    return str(value)


def format_entry(entry):
    """
    Format a search result entry as LDIF-like text.
    :param entry: ``LDAPSearchResultEntry``
    :return: a string
    """
    lines = ['dn: {}'.format(_text(entry.objectName))]
    for name, values in entry.attributes:
        for value in values:
            lines.append('{}: {}'.format(_text(name), _text(value)))
    return '\n'.join(lines)


@defer.inlineCallbacks
def run(reactor, options, config):
    """
    Execute the sub-command given in *options*.
    :return: A Deferred that fires when the command is done
    """
    command = options.subOptions
    log.debug('Running {command!r} as {username!r}', command=options.subCommand, username=command['username'])
    password = options['password']
    if password is None:
        password = getpass.getpass('Password for {}: '.format(command['username']))
    try:
        ldap = MicroLDAP(options_from_config(config), reactor)
        if options.subCommand == 'bind':
            yield ldap.bind(command['username'], password)
            print('Bind as {} succeeded.'.format(command['username']))
        else:
            defaults = config['search']
            entries = yield ldap.search(command['base'] or defaults['base'],
                                        command['filter'],
                                        command['attributes'] or defaults['attributes'],
                                        command['scope'] or defaults['scope'],
                                        command['username'],
                                        password)
            for entry in entries:
                print(format_entry(entry))
                print()
            print('{} entries found.'.format(len(entries)))
    except MicroLDAPError as e:
        print('{} failed: {}'.format(options.subCommand, e), file=sys.stderr)
        raise SystemExit(1)


def main(argv=None):
    options = Options()
    try:
        options.parseOptions(argv)
    except usage.UsageError as e:
        print('{}: {}'.format(sys.argv[0], e), file=sys.stderr)
        print(options, file=sys.stderr)
        sys.exit(1)
    start_logging(options['verbose'])
    config = load_config(options['config'])
    react(run, [options, config])


if __name__ == '__main__':
    main()
