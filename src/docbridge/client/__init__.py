"""HTTP client module for docbridge.

Provides :class:`Context7Client`, a non-blocking client for the Context7
documentation API backed by :class:`httpx.AsyncClient`.

Example::

    from docbridge.client import Context7Client, ContextFormat

    async with Context7Client(base_url, api_key=key) as client:
        text = await client.fetch_context("/vercel/next.js", "routing", ContextFormat.TEXT)
"""

from docbridge.client.context7 import Context7Client, ContextFormat

__all__ = ["Context7Client", "ContextFormat"]
