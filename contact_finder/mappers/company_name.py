from urllib.parse import urlsplit


def company_name_from_url(url: str) -> str | None:
    """Derive a display name from the hostname: https://www.acme.com -> "Acme"."""
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError:
        return None
    if not parts.scheme or not hostname:
        return None

    name = hostname.removeprefix("www.").split(".")[0]
    return name[:1].upper() + name[1:]
