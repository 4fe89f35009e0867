"""ASGI handler: translates ASGI scope/messages to perch types.

The only component that touches raw HTTP scopes. Builds a typed
Request, dispatches it through the router and sends the Response back.
"""

from perch._internal.asgi import Receive, Scope, Send
from perch.http.request import Request
from perch.routing.router import Router
from perch.server.sender import send_response


async def handle_request(scope: Scope, receive: Receive, send: Send, *, router: Router) -> None:
    """Process a single HTTP request."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    response = await router.dispatch(request)
    await send_response(response, send)
