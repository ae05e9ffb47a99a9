""" Exceptions raised by :mod:`amqpsocket`. Handler failures are not
    represented here; whatever a handler raises is reported back to the
    caller as an error envelope.
"""


class AmqpSocketError(Exception):
    """Base class for all amqpsocket errors."""


class ConfigurationError(AmqpSocketError):
    """ A required configuration value or environment variable is missing,
        or present but unusable.
    """


class DecodeError(AmqpSocketError):
    """An inbound message could not be interpreted."""


class PublishError(AmqpSocketError):
    """ A response could not be handed over to the broker. These are not
        retried.
    """


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
