"""HTTP routing toolkit: radix router, middleware, JSON rendering, WebSockets and SPA serving."""

__version__ = "0.1.0"