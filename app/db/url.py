from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

ASYNC_SCHEME = "postgresql+psycopg"
_PLAIN_SCHEMES = {"postgres", "postgresql", "postgresql+asyncpg", "postgresql+psycopg2"}
_SSL_OFF = {"0", "false", "no", "off", "disable"}
_SSL_VERIFY = {"require", "verify-ca", "verify-full"}


def normalize_database_url(url: str) -> str:
    """Point any Postgres URL at the async psycopg driver.

    Hosted providers often hand out ``ssl=true`` style flags; those become
    libpq's ``sslmode``.
    """
    url = (url or "").strip()
    if not url:
        return url

    parts = urlsplit(url)
    scheme = ASYNC_SCHEME if parts.scheme in _PLAIN_SCHEMES else parts.scheme

    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    ssl_key = next((key for key in query if key.lower() == "ssl"), None)
    if ssl_key is not None:
        flag = query.pop(ssl_key).lower().strip()
        if "sslmode" not in query:
            if flag in _SSL_OFF:
                query["sslmode"] = "disable"
            elif flag in _SSL_VERIFY:
                query["sslmode"] = flag
            else:
                query["sslmode"] = "require"

    return urlunsplit((scheme, parts.netloc, parts.path, urlencode(query, doseq=True), parts.fragment))
