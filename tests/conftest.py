import json
import pytest

import pika
import pika.spec

import amqpsocket


class FakeConnection:
    """ Stand-in for a pika BlockingConnection. Thread-safe callbacks run
        immediately, on whatever thread requested them.
    """

    def __init__(self):
        self.is_open = True
        self.callbacks = 0

    def add_callback_threadsafe(self, callback):
        self.callbacks += 1
        callback()

    def process_data_events(self, time_limit=None):
        pass


class Published:

    def __init__(self, exchange, routing_key, body, properties):
        self.exchange = exchange
        self.routing_key = routing_key
        self.body = body
        self.properties = properties
        self.envelope = amqpsocket.json.loads(body)


class FakeChannel:
    """ Stand-in for a pika BlockingChannel, recording everything it is
        asked to do. Set *fail* to an exception instance to make
        basic_publish() raise it.
    """

    def __init__(self):
        self.connection = FakeConnection()
        self.declared = list()
        self.bound = list()
        self.acked = list()
        self.published = list()
        self.consumers = dict()
        self.consuming = False
        self.fail = None

    def queue_declare(self, queue, **kwargs):
        self.declared.append(('queue', queue))

    def exchange_declare(self, exchange, exchange_type='direct', **kwargs):
        self.declared.append(('exchange', exchange, exchange_type))

    def queue_bind(self, queue, exchange, routing_key=None, **kwargs):
        self.bound.append((queue, exchange, routing_key))

    def basic_ack(self, delivery_tag=0, multiple=False):
        self.acked.append(delivery_tag)

    def basic_consume(self, queue, on_message_callback, auto_ack=False, **kwargs):
        self.consumers[queue] = (on_message_callback, auto_ack)
        return 'ctag1'

    def basic_publish(self, exchange, routing_key, body, properties=None, mandatory=False):
        if self.fail is not None:
            raise self.fail
        self.published.append(Published(exchange, routing_key, body, properties))

    def start_consuming(self):
        self.consuming = True

    def stop_consuming(self):
        self.consuming = False


def settings():

    block = dict()
    block['queue'] = {'request': 'query-request'}
    block['exchange'] = {'request': 'requests', 'response': 'responses'}
    block['routingKey'] = {'request': 'query-request'}
    block['successType'] = 'query_result'
    block['errorType'] = 'query_error'

    return block


def frontend_header(session_id='session-1', call_id='call-1', frontend_body='', **session):

    session_data = dict()
    session_data['username'] = 'alice'
    session_data['userID'] = 'user-1'
    session_data['impersonateID'] = ''
    session_data['sessionID'] = session_id
    session_data['saveStateID'] = 'state-1'
    session_data['roomID'] = 'room-1'
    session_data['jwt'] = 'token'
    session_data.update(session)

    header = dict()
    header['sessionData'] = session_data
    header['fromFrontend'] = {'callID': call_id, 'body': frontend_body}

    return json.dumps(header)


def make_delivery(channel, body=None, tag=1, headers=None, **header_kwargs):
    """ Return a Delivery shaped like what pika hands to a consumer callback
        for a frontend request. *body* is JSON-encoded unless it is already
        bytes.
    """

    if headers is None:
        headers = {'message': frontend_header(**header_kwargs)}

    if body is None:
        body = b''
    elif not isinstance(body, bytes):
        body = json.dumps(body).encode()

    method = pika.spec.Basic.Deliver(delivery_tag=tag)
    properties = pika.BasicProperties(headers=headers)

    return amqpsocket.message.Delivery(channel, method, properties, body)


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def configuration():
    return amqpsocket.Configuration.from_dict(settings())


@pytest.fixture
def routing_keys():
    return amqpsocket.LocalStore({'session-1': 'route-1', 'session-2': 'route-2'})


@pytest.fixture
def socket(configuration, channel, routing_keys):

    socket = amqpsocket.AmqpSocket(configuration, channel, routing_keys)

    yield socket

    socket.workers.shutdown(wait=True)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
