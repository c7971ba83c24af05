"""oplogout.common.urls.
~~~~~~~~~~~~~~~~~~~~~

URL helpers for composing redirect locations.
"""

from urllib.parse import parse_qsl
from urllib.parse import urlencode
from urllib.parse import urlparse
from urllib.parse import urlunparse


def url_encode(params):
    return urlencode(params)


def url_decode(query):
    return parse_qsl(query, keep_blank_values=True)


def add_params_to_qs(query, params):
    """Extend a query with a list of two-tuples."""
    if isinstance(params, dict):
        params = params.items()

    qs = url_decode(query)
    qs.extend(params)
    return url_encode(qs)


def add_params_to_uri(uri, params):
    """Add a list of two-tuples to the uri query components."""
    sch, net, path, par, query, fra = urlparse(uri)
    query = add_params_to_qs(query, params)
    return urlunparse((sch, net, path, par, query, fra))


def is_local_url(url):
    """Check if the url points inside the application, e.g. ``/logout`` or
    ``~/logout``. Protocol relative urls like ``//host/path`` and ``/\\host``
    are not local.
    """
    if not url:
        return False
    if url.startswith("~/"):
        return True
    if url[0] != "/":
        return False
    return len(url) == 1 or url[1] not in ("/", "\\")


def is_absolute_url(url):
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
