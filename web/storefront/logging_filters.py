"""Logging filter that stamps records with the current request id.

Install it on handlers (see ``LOGGING`` in settings) so formatters can use
``%(request_id)s`` for every record, including ones logged outside a
request, which get ``-``.
"""

from logging import Filter, LogRecord

from .middleware import REQUEST_ID_CTX


class RequestIdFilter(Filter):
    def filter(self, record: LogRecord) -> bool:
        record.request_id = REQUEST_ID_CTX.get()
        return True
