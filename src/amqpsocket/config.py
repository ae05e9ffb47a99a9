""" Configuration for an :class:`amqpsocket.AmqpSocket`, and the
    environment-driven settings used to reach the broker.
"""

import os

import pika

from . import errors
from . import json
from . import message


class Configuration:
    """ The topology and response settings for one :class:`AmqpSocket`.

        Requests are consumed from *request_queue*, which is bound to the
        direct *request_exchange* with *request_routing_key*. Responses are
        published to the direct *response_exchange*, routed by the session's
        routing key.

        *success_type* and *error_type* are written into the ``type`` field
        of every response; the frontend uses them to pick a callback.

        *body_mapper* is called with the inbound :class:`message.Delivery`
        and must return a dictionary: the body handed to the handlers, with
        an optional ``action`` field selecting which handler. The default
        decodes the message body as JSON.
    """

    def __init__(self, request_queue, request_exchange, response_exchange,
                 request_routing_key, success_type, error_type, body_mapper=None):

        if body_mapper is None:
            body_mapper = message.json_body

        self.request_queue = request_queue
        self.request_exchange = request_exchange
        self.request_routing_key = request_routing_key
        self.response_exchange = response_exchange
        self.success_type = success_type
        self.error_type = error_type
        self.body_mapper = body_mapper


    def __repr__(self):
        return 'Configuration(queue=%s, response=%s)' % (repr(self.request_queue), repr(self.response_exchange))


    @classmethod
    def from_dict(cls, block, body_mapper=None):
        """ Build a :class:`Configuration` from the nested form used by the
            frontend services:

                {"queue": {"request": ...},
                 "exchange": {"request": ..., "response": ...},
                 "routingKey": {"request": ...},
                 "successType": ..., "errorType": ...}

            The body mapper cannot be expressed in this form and is passed
            separately.
        """

        try:
            request_queue = block['queue']['request']
            request_exchange = block['exchange']['request']
            response_exchange = block['exchange']['response']
            request_routing_key = block['routingKey']['request']
            success_type = block['successType']
            error_type = block['errorType']
        except KeyError as e:
            raise errors.ConfigurationError('missing configuration value: ' + str(e))
        except TypeError:
            raise errors.ConfigurationError('configuration must be a nested dictionary')

        if body_mapper is None:
            try:
                body_mapper = block['bodyMapper']
            except KeyError:
                pass

        return cls(request_queue, request_exchange, response_exchange,
                   request_routing_key, success_type, error_type, body_mapper)


    @classmethod
    def load(cls, filename, body_mapper=None):
        """ Read the nested form described in :func:`from_dict` from a JSON
            file.
        """

        try:
            raw = open(filename, 'rb').read()
        except FileNotFoundError:
            raise errors.ConfigurationError('configuration file not found: ' + str(filename))

        try:
            block = json.loads(raw)
        except json.decode_errors as e:
            raise errors.ConfigurationError('cannot parse %s: %s' % (filename, e))

        return cls.from_dict(block, body_mapper)


# end of class Configuration



def environment(name, default=None):
    """ Return the value of the environment variable *name*. If it is not set
        the *default* is returned instead; a :class:`ConfigurationError` is
        raised if there is no default either.
    """

    try:
        value = os.environ[name]
    except KeyError:
        value = default

    if value is None:
        raise errors.ConfigurationError(name + ' not set')

    return value



def broker_parameters():
    """ Return the :class:`pika.ConnectionParameters` for the RabbitMQ broker,
        as described by the RABBIT_USER, RABBIT_PASSWORD, RABBIT_HOST and
        RABBIT_PORT environment variables. All four are required.
    """

    user = environment('RABBIT_USER')
    password = environment('RABBIT_PASSWORD')
    host = environment('RABBIT_HOST')
    port = environment('RABBIT_PORT')

    try:
        port = int(port)
    except ValueError:
        raise errors.ConfigurationError('RABBIT_PORT is not a port number: ' + repr(port))

    credentials = pika.PlainCredentials(user, password)

    return pika.ConnectionParameters(
        host=host,
        port=port,
        credentials=credentials,
        heartbeat=600,
        blocked_connection_timeout=300,
    )


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
