""" The :class:`AmqpSocket` consumes frontend requests from a RabbitMQ
    queue, dispatches them to registered handlers, and publishes the
    correlated responses back to the caller's session.
"""

import concurrent.futures
import logging
import threading

import pika

from . import config
from . import errors
from . import message
from . import publish
from . import registry


logger = logging.getLogger(__name__)


class AmqpSocket:
    """ Request/response endpoints on top of the frontend's AMQP topology.
        The *configuration* is a :class:`config.Configuration` instance; the
        *channel* is an open pika channel; the *store* is a
        :class:`store.RoutingKeyStore` used to find out where the response
        for a given session should be routed.

        The request queue and both exchanges are declared, and the queue
        bound, when the socket is created.

        Example::

            configuration = amqpsocket.Configuration.load('service.json')
            store = amqpsocket.create_store()
            socket = amqpsocket.create(configuration, store)

            def foo(request, session):
                return {'bar': 'bar'}

            socket.handle('foo', foo)
            socket.listen()

        Every message is acknowledged as soon as it is received, before it
        is processed: a request is answered at most once, and a request
        in progress when the process dies is lost without any response.

        Processing happens on a pool of :attr:`worker_count` threads, so
        responses may go out in a different order than the requests came
        in; the frontend correlates them by call ID.
    """

    worker_count = 10

    def __init__(self, configuration, channel, store):

        self.config = configuration
        self.channel = channel
        self.store = store
        self.consumer_tag = None

        self.handlers = registry.Registry()
        self.publisher = publish.Publisher(channel, configuration.response_exchange,
                                           configuration.success_type,
                                           configuration.error_type)
        self.workers = concurrent.futures.ThreadPoolExecutor(max_workers=self.worker_count)

        self._inflight = 0
        self._inflight_lock = threading.Lock()

        self._declare()


    def _declare(self):
        """ Declare the request queue and exchange, bind them together, and
            declare the response exchange.
        """

        channel = self.channel
        configuration = self.config

        channel.queue_declare(queue=configuration.request_queue)
        channel.exchange_declare(exchange=configuration.request_exchange, exchange_type='direct')
        channel.queue_bind(queue=configuration.request_queue,
                           exchange=configuration.request_exchange,
                           routing_key=configuration.request_routing_key)

        channel.exchange_declare(exchange=configuration.response_exchange, exchange_type='direct')


    def handle(self, action, handler, session=None):
        """ Register *handler* for requests whose body carries the given
            *action*. Registering the same action again replaces the
            previous handler.

            Handlers registered to ``'__default'`` are called for requests
            that do not specify an action. Handlers are called either as
            ``handler(body)`` or, if they require a second argument, as
            ``handler(body, session)``. Set *session* to True or False to
            choose explicitly, for example for ``handler(body, session=None)``;
            see :func:`registry.Registry.register`. Exceptions raised by a
            handler are sent back to the frontend as an error response.
        """

        self.handlers.register(action, handler, session)


    def listen(self):
        """ Consume requests until :func:`close` is called or the channel
            fails. This call blocks, and must be made from the thread that
            owns the connection.
        """

        self.publisher.owner = threading.get_ident()

        self.consumer_tag = self.channel.basic_consume(
            queue=self.config.request_queue,
            on_message_callback=self._on_request)

        logger.info('consuming requests from %s', self.config.request_queue)

        try:
            self.channel.start_consuming()
        finally:
            self._drain()


    def close(self):
        """ Stop consuming. Safe to call from any thread; requests already
            being processed are still answered before :func:`listen`
            returns.
        """

        self.channel.connection.add_callback_threadsafe(self.channel.stop_consuming)


    def _drain(self):
        """ Keep the connection serviced until every in-flight request has
            had its response published, then release the worker pool.
        """

        connection = self.channel.connection

        while True:
            with self._inflight_lock:
                remaining = self._inflight

            if remaining == 0 or not connection.is_open:
                break

            connection.process_data_events(time_limit=0.1)

        self.workers.shutdown(wait=True)


    def _on_request(self, channel, method, properties, body):
        """ pika consumer callback, invoked on the connection thread. The
            message is acknowledged right away and handed to the worker pool.
        """

        channel.basic_ack(delivery_tag=method.delivery_tag)

        delivery = message.Delivery(channel, method, properties, body)
        logger.debug('received message %s (%d bytes)', method.delivery_tag, len(body))

        with self._inflight_lock:
            self._inflight += 1

        try:
            self.workers.submit(self._process, delivery)
        except RuntimeError:
            # The pool is shut down; the socket is closing.
            self._finished()
            logger.warning('dropping message %s, socket is closed', method.delivery_tag)


    def _finished(self):

        with self._inflight_lock:
            self._inflight -= 1


    def _process(self, delivery):
        """ Worker entry point. Nothing raised here can reach the frontend
            any more, so failures are logged and the message is dropped.
        """

        try:
            self.dispatch(delivery)
        except errors.DecodeError:
            logger.exception('dropping malformed message %s', delivery.delivery_tag)
        except errors.PublishError:
            logger.exception('response for message %s was not sent', delivery.delivery_tag)
        except Exception:
            logger.exception('unexpected failure processing message %s', delivery.delivery_tag)
        finally:
            self._finished()


    def dispatch(self, delivery):
        """ Process a single :class:`message.Delivery`: decode it, look up
            the caller's routing key, invoke the handler for the requested
            action, and publish the outcome. Returns the
            :class:`message.Response` that was published, or None if the
            session is gone and the message was dropped.

            :class:`errors.DecodeError` is raised for messages that cannot
            be interpreted, :class:`errors.PublishError` if the response
            could not be sent.
        """

        header = message.FrontendMessage.decode(delivery)
        body = self.config.body_mapper(delivery)

        if isinstance(body, dict):
            pass
        else:
            raise errors.DecodeError('body mapper returned a %s, expected a dict' % (type(body).__name__))

        routing_key = self.store.get(header.session_id)

        if routing_key is None:
            logger.warning('no routing key for session %s, session is no longer alive; ignoring call %s',
                           header.session_id, header.call_id)
            return None

        logger.debug('routing key for session %s: %s', header.session_id, routing_key)

        context = message.PublishContext(routing_key, header.call_id, delivery.properties.headers)

        action = body.get('action')

        if action is None:
            if registry.default_action in self.handlers:
                action = registry.default_action
                body['action'] = action
            else:
                return self.publisher.publish_error(context, 'No action specified')

        handler = self.handlers.resolve(action)

        if handler is None:
            return self.publisher.publish_error(context, "Action \"%s\" doesn't exist" % (action,))

        try:
            result = handler(body, header.session)
        except Exception as e:
            logger.debug('handler for %s failed on call %s', repr(action), header.call_id, exc_info=True)
            text = str(e)
            if text == '':
                text = 'An error occurred'
            return self.publisher.publish_error(context, text)

        return self.publisher.publish_success(context, result)


# end of class AmqpSocket



def create(configuration, store, parameters=None):
    """ Connect to the RabbitMQ broker and return a new :class:`AmqpSocket`.
        The connection *parameters* default to the ones described by the
        RABBIT_* environment variables; see :func:`config.broker_parameters`.
        The returned socket must be used from the calling thread.
    """

    if parameters is None:
        parameters = config.broker_parameters()

    connection = pika.BlockingConnection(parameters)
    channel = connection.channel()

    return AmqpSocket(configuration, channel, store)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
