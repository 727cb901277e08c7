"""Client module for reflect.

Provides :class:`Client`, which presents identical call semantics over
HTTP(S) and a UNIX-domain socket, the fluent :class:`RequestBuilder`, and
the uniform :class:`Response`.

Example::

    from reflect.client import Client

    with Client("/run/reflect.sock") as client:
        resp = client.call("/echo").post({"x": 1})
        print(resp.status, resp.json())
"""

from reflect.client.client import Client, RequestBuilder
from reflect.client.response import Response

__all__ = ["Client", "RequestBuilder", "Response"]
