""" A small service answering schema requests from the frontend. Run with
    the RABBIT_* and REDIS_* environment variables set.
"""

import logging

import amqpsocket


SCHEMAS = dict()
SCHEMAS['movies'] = {'nodes': ['Movie', 'Person'], 'edges': ['ACTED_IN', 'DIRECTED']}


def get_schema(request, session):

    name = request.get('database')

    try:
        return SCHEMAS[name]
    except KeyError:
        raise ValueError('%s has no database named %s' % (session['username'], repr(name)))


def list_schemas(request):
    return sorted(SCHEMAS.keys())


def main():

    logging.basicConfig(level=logging.INFO)

    configuration = amqpsocket.Configuration(
        request_queue='schema-request-queue',
        request_exchange='requests-exchange',
        response_exchange='ui-direct-exchange',
        request_routing_key='schema-request',
        success_type='schema_result',
        error_type='schema_error',
    )

    store = amqpsocket.create_store()
    socket = amqpsocket.create(configuration, store)

    socket.handle('__default', get_schema)
    socket.handle('list', list_schemas)

    socket.listen()


if __name__ == '__main__':
    main()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
