"""msgstream client layer.

All network access goes through MessagesClient and a MessagesTransport.
"""

from msgstream.client.base import MessagesTransport, parse_api_error
from msgstream.client.client import MessagesClient
from msgstream.client.http_transport import HttpxTransport

__all__ = [
    "HttpxTransport",
    "MessagesClient",
    "MessagesTransport",
    "parse_api_error",
]
