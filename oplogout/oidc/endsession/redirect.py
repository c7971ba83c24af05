from oplogout.common.urls import is_absolute_url
from oplogout.common.urls import is_local_url


def resolve_logout_url(logout_url: str, origin: str, base_path: str = "/") -> str:
    """Turn the configured logout page url into an absolute url.

    ``~/logout`` and ``/logout`` are relative to the application root, which
    is ``origin`` followed by ``base_path``. Absolute urls are returned as
    they are::

        >>> resolve_logout_url("~/logout", "https://server", "/identity/")
        'https://server/identity/logout'

    :param logout_url: configured url of the logout page
    :param origin: scheme, host and port of the current request
    :param base_path: path the application is mounted under
    """
    if is_local_url(logout_url):
        if not is_absolute_url(origin):
            raise ValueError(f"Invalid request origin: {origin!r}")
        path = logout_url[1:] if logout_url.startswith("~") else logout_url
        url = origin.rstrip("/")
        base_path = (base_path or "").strip("/")
        if base_path:
            url += "/" + base_path
        return url + "/" + path.lstrip("/")

    if is_absolute_url(logout_url):
        return logout_url

    raise ValueError(f"Invalid logout url: {logout_url!r}")
