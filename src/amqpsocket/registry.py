""" The mapping from action names to the handlers answering them.

    A handler is called with the request body, a dictionary; session-aware
    handlers additionally receive the caller's session data. Either kind
    may be a coroutine function, in which case it is run to completion on
    the worker thread that is processing the request. Whatever the handler
    returns is sent back as the value of a success response; whatever it
    raises is sent back as an error response.
"""

import asyncio
import inspect
import threading


default_action = '__default'


class Registry:
    """ A thread-safe mapping from action names to handlers. The calling
        convention for each handler is worked out once, when it is
        registered; :func:`resolve` returns a uniform callable taking
        ``(body, session)`` regardless of the handler's shape.
    """

    def __init__(self):

        self._handlers = dict()
        self._lock = threading.Lock()


    def __contains__(self, action):
        return action in self._handlers


    def __len__(self):
        return len(self._handlers)


    def actions(self):
        """ Return the list of registered action names.
        """

        return list(self._handlers.keys())


    def register(self, action, handler, session=None):
        """ Bind *handler* to *action*, replacing any previous binding. If
            *session* is None the handler is inspected to decide whether
            it requires the session data as a second positional argument;
            set it to True or False to skip the inspection.
        """

        if session is None:
            session = wants_session(handler)

        invoke = _bind(handler, session)

        with self._lock:
            self._handlers[action] = invoke


    def resolve(self, action):
        """ Return the invocation callable for *action*, or None if nothing
            is registered under that name.
        """

        try:
            return self._handlers[action]
        except (KeyError, TypeError):
            # TypeError: the action came off the wire as something
            # unhashable, like a list; nothing can be registered under it.
            return None


# end of class Registry



def wants_session(handler):
    """ Return True if the *handler* requires a second positional argument.
        Optional parameters are left alone: ``handler(body, verbose=False)``
        is called with the body only.
    """

    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        return False

    required = 0

    for parameter in signature.parameters.values():
        kind = parameter.kind

        if kind == parameter.VAR_POSITIONAL:
            return True

        if parameter.default is not parameter.empty:
            continue

        if kind == parameter.POSITIONAL_ONLY or kind == parameter.POSITIONAL_OR_KEYWORD:
            required += 1

    return required >= 2



def _bind(handler, session):

    if session:
        def call(body, session_data):
            return handler(body, session_data)
    else:
        def call(body, session_data):
            return handler(body)

    def invoke(body, session_data):
        result = call(body, session_data)

        # Decorated coroutine functions and objects with an async
        # __call__ only reveal themselves once called.
        if inspect.isawaitable(result):
            result = asyncio.run(_complete(result))

        return result

    invoke.handler = handler
    return invoke



async def _complete(awaitable):
    return await awaitable


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
