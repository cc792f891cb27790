"""Call-routing decision core for a SIP application server.

iFC evaluation selects the application servers a request must visit;
ENUM translation turns dialled numbers into destination URIs.
"""

from callrouting.router import CallRouter

__version__ = "0.1.0"

__all__ = ["CallRouter", "__version__"]
