"""Request-scoped context shared between the host middleware and outbound calls"""

from contextvars import ContextVar

# Empty string means no host request is in progress
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
