''' Wrapper module to select the most performant available library to handle
    the equivalent of :func:`json.loads` and :func:`json.dumps`. Message
    bodies travel through pika as bytes, so :func:`dumps` always returns
    bytes, and :func:`loads` accepts either bytes or str; AMQP header
    values arrive as one or the other depending on their content.

    :data:`decode_errors` is the tuple of exceptions the selected library
    raises for malformed input, for use in an ``except`` clause.
'''

# msgspec is the declared dependency; orjson and the standard library are
# only consulted if it cannot be imported.

msgspec = None
orjson = None
json = None

try:
    import msgspec
except ImportError:
    pass

if msgspec is None:
    try:
        import orjson
    except ImportError:
        pass

if msgspec is None and orjson is None:
    import json


def json_dumps(*args, **kwargs):
    return json.dumps(*args, **kwargs).encode()


if msgspec is not None:
    encoder = msgspec.json.Encoder()
    decoder = msgspec.json.Decoder()
    dumps = encoder.encode
    loads = decoder.decode
    decode_errors = (msgspec.DecodeError, ValueError)
elif orjson is not None:
    dumps = orjson.dumps
    loads = orjson.loads
    decode_errors = (orjson.JSONDecodeError,)
else:
    dumps = json_dumps
    loads = json.loads
    decode_errors = (ValueError,)

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
