"""
Hardening headers on every response.

Nothing here renders HTML, so the CSP denies everything. JSON bodies
contain caller-scoped data and are marked ``no-store``.
"""

_STATIC_HEADERS = (
    ("Content-Security-Policy", "default-src 'none'; frame-ancestors 'none'"),
    ("X-Content-Type-Options", "nosniff"),
    ("X-Frame-Options", "DENY"),
    ("Strict-Transport-Security", "max-age=31536000; includeSubDomains"),
    ("Referrer-Policy", "no-referrer"),
    ("Permissions-Policy", "camera=(), microphone=(), geolocation=()"),
)


def init_security_headers(app):

    @app.after_request
    def _harden(response):
        for name, value in _STATIC_HEADERS:
            response.headers.setdefault(name, value)
        if response.is_json:
            response.headers.setdefault("Cache-Control", "no-store")
        response.headers.pop("Server", None)
        return response
