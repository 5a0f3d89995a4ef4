"""Email address helpers."""


def split_address(address: str) -> tuple[str, str]:
    """Split ``local@domain`` into (login, domain)."""
    login, sep, domain = address.partition("@")
    if not sep or not login or not domain:
        raise ValueError(f"Not an email address: {address!r}")
    return login, domain
