""" Python implementation of the frontend's AMQP request/response bridge.
    Requests published by the frontend gateway are consumed from a RabbitMQ
    queue, dispatched by action name to plain Python handler functions, and
    the results are published back to the caller's session.
"""

# Utility components.

from . import errors
from . import json

# Submodules used by multiple other components.

from . import message
from . import config
from . import registry
from . import store
from . import publish

# Primary public-facing interfaces.

from . import dispatch

AmqpSocket = dispatch.AmqpSocket
create = dispatch.create

Configuration = config.Configuration

RoutingKeyStore = store.RoutingKeyStore
LocalStore = store.LocalStore
RedisStore = store.RedisStore
create_store = store.create_store

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
