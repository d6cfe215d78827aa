"""
CV intake service.

Bulk CV upload intake: an HTTP adapter enqueues one job per uploaded file and a
single queue worker parses, applies and reports each batch.
"""

__version__ = "0.1.0"
