""" Class representations of the messages exchanged with the frontend: the
    inbound delivery as handed over by pika, the request header embedded
    in it, the context needed to answer it, and the response envelope.
"""

from . import errors
from . import json


class Delivery:
    """ A single inbound message, exactly as pika hands it to a consumer
        callback. The *body* is the raw bytes of the message; the request
        header, if any, lives in the AMQP headers of the *properties*.

        A :class:`Delivery` is what the configured body mapper receives.
        Once the request header has been decoded it is available as
        :attr:`frontend`.
    """

    def __init__(self, channel, method, properties, body):

        self.channel = channel
        self.method = method
        self.properties = properties
        self.body = body
        self.frontend = None


    @property
    def headers(self):
        """ The AMQP headers of this delivery. pika leaves the headers as
            None when the publisher did not set any; an empty dictionary is
            returned in that case.
        """

        headers = self.properties.headers

        if headers is None:
            headers = dict()

        return headers


    @property
    def delivery_tag(self):
        return self.method.delivery_tag


# end of class Delivery



class FrontendMessage:
    """ The original frontend request, carried in the ``message`` header of
        every inbound delivery:

            {"sessionData": {...}, "fromFrontend": {"callID": ..., "body": ...}}

        The *session* is the ``sessionData`` dictionary; it is handed to
        session-aware handlers as-is. Only the ``sessionID`` field is
        interpreted here, to find out where the response should go.

        :ivar session: The caller's session data.
        :ivar call_id: The correlation id the response must carry.
        :ivar body: The raw frontend body string, if any.
    """

    header = 'message'

    def __init__(self, session, call_id, body=None):

        self.session = session
        self.call_id = call_id
        self.body = body


    def __repr__(self):
        return 'FrontendMessage(session=%s, call_id=%s)' % (repr(self.session_id), repr(self.call_id))


    @property
    def session_id(self):
        return self.session['sessionID']


    @classmethod
    def decode(cls, delivery):
        """ Extract the :class:`FrontendMessage` from the headers of the
            supplied :class:`Delivery`. A :class:`errors.DecodeError` is
            raised if the header is missing or is not shaped like a frontend
            request. The result is cached on the delivery as
            :attr:`Delivery.frontend`.
        """

        if delivery.frontend is not None:
            return delivery.frontend

        try:
            raw = delivery.headers[cls.header]
        except KeyError:
            raise errors.DecodeError("delivery has no '%s' header" % (cls.header))

        try:
            contents = json.loads(raw)
        except json.decode_errors as e:
            raise errors.DecodeError("'%s' header is not valid JSON: %s" % (cls.header, e))
        except TypeError:
            raise errors.DecodeError("'%s' header is a %s, not a string" % (cls.header, type(raw).__name__))

        try:
            session = contents['sessionData']
            from_frontend = contents['fromFrontend']
            call_id = from_frontend['callID']
        except (KeyError, TypeError) as e:
            raise errors.DecodeError("'%s' header is missing %s" % (cls.header, e))

        if isinstance(session, dict) and 'sessionID' in session:
            pass
        else:
            raise errors.DecodeError("'%s' header has no session ID" % (cls.header))

        body = from_frontend.get('body')

        decoded = cls(session, call_id, body)
        delivery.frontend = decoded
        return decoded


# end of class FrontendMessage



class PublishContext:
    """ Everything needed to send a response for one inbound message: the
        *routing_key* for the caller's session on the response exchange,
        the *call_id* to correlate with, and the *headers* of the original
        delivery, which are echoed back unchanged.
    """

    def __init__(self, routing_key, call_id, headers=None):

        self.routing_key = routing_key
        self.call_id = call_id
        self.headers = headers


# end of class PublishContext



class Response:
    """ The envelope sent back to the frontend. The *type* is one of the
        configured success or error tags; the frontend uses it to select a
        callback. The *value* is the handler result, or a dictionary with
        an ``error`` field.
    """

    def __init__(self, value, type, call_id):

        self.value = value
        self.type = type
        self.call_id = call_id

        self._encoded = None


    def __repr__(self):
        return 'Response(type=%s, call_id=%s)' % (repr(self.type), repr(self.call_id))


    def to_dict(self):

        response = dict()
        response['value'] = self.value
        response['type'] = self.type
        response['callID'] = self.call_id

        return response


    def encode(self):
        """ Return the JSON encoding of this envelope as bytes. Calling this
            method multiple times returns the cached encoding.
        """

        if self._encoded is None:
            self._encoded = json.dumps(self.to_dict())

        return self._encoded


# end of class Response



def json_body(delivery):
    """ Body mapper that decodes the delivery body as a JSON object. An
        empty body is treated as an empty request.
    """

    return _object(delivery.body, 'message body')



def frontend_body(delivery):
    """ Body mapper that decodes the ``fromFrontend.body`` string of the
        request header as a JSON object, for services that receive the
        frontend request untouched.
    """

    header = FrontendMessage.decode(delivery)
    return _object(header.body, 'frontend body')



def _object(raw, description):

    if raw is None or len(raw) == 0:
        return dict()

    try:
        decoded = json.loads(raw)
    except json.decode_errors as e:
        raise errors.DecodeError('%s is not valid JSON: %s' % (description, e))

    if isinstance(decoded, dict):
        return decoded

    raise errors.DecodeError('%s must be a JSON object, not %s' % (description, type(decoded).__name__))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
