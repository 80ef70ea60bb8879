import sys

import configobj
import validate

from microldap.errors import ConfigurationError

#: Layout of the microldap configuration file. Validating against it also converts
#: booleans and attribute lists to Python values.
CONFIG_SPEC = """
[ldap]
url = string
reject-unauthorized = boolean(default=True)
ca = string(default='')

[search]
base = string(default='')
scope = option('base', 'one', 'sub', default='sub')
attributes = force_list(default=list('*'))
"""


def format_config_errors(config, result):
    """
    Interpret configobj results and return a list of human-readable error messages.
    """
    messages = []
    for sections, key, error in configobj.flatten_errors(config, result):
        location = '[{}]'.format(']['.join(sections))
        if key is None:
            messages.append('{}: section is missing'.format(location))
        elif error is False:
            messages.append('{} {}: value is missing'.format(location, key))
        else:
            messages.append('{} {}: {}'.format(location, key, error))
    return messages


def parse_config(lines):
    """
    Parse and validate the configuration given as a list of lines or a file object.
    :return: a ``configobj.ConfigObj`` instance
    :raises ConfigurationError: if the configuration is invalid, with one line per error
    """
    config = configobj.ConfigObj(lines, configspec=CONFIG_SPEC.splitlines())
    validator = validate.Validator()
    result = config.validate(validator, preserve_errors=True)
    if result is not True:
        raise ConfigurationError('\n'.join(format_config_errors(config, result)))
    return config


def load_config(filename):
    """
    Load, validate and return the configuration file stored at *filename*.
    In case the configuration is invalid, report the error to the user
    and exit with return code 1.
    :param filename: config filename as a string
    :return: a dictionary
    """
    with open(filename, 'r') as f:
        try:
            return parse_config(f)
        except ConfigurationError as e:
            print('Invalid config file:', file=sys.stderr)
            print(e, file=sys.stderr)
            sys.exit(1)


def options_from_config(config):
    """
    Turn the ``[ldap]`` section of a validated configuration into ``MicroLDAP`` options.
    :param config: validated configuration
    :return: a dictionary
    """
    section = config['ldap']
    return {
        'url': section['url'],
        'reject_unauthorized': section['reject-unauthorized'],
        'ca': section['ca'] or None,
    }
