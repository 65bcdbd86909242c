"""
Default route handler.

Answers every request to "/" with a plain-text greeting naming the
request method and the client's User-Agent:

    GET / HTTP/1.1
    User-Agent: TestBot/1.0

    HTTP/1.1 200 OK
    Content-Type: text/plain

    Howdy, we received an GET from TestBot/1.0
"""

from ..http.request import ServerRequest
from ..http.response import Response


GREETING = "Howdy, we received an {method} from {user_agent}"


def index(request: ServerRequest) -> Response:
    """Handle "/" for any method."""
    body = GREETING.format(
        method=request.get_method(),
        user_agent=request.get_header_line("User-Agent"),
    )

    response = (Response()
        .with_status(200)
        .with_header("Content-Type", "text/plain"))
    response.get_body().write(body)

    return response
