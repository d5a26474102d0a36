"""Repository slug utilities.

Webhook payloads identify repositories by ``full_name`` in ``owner/name``
format. Canonical payloads carry the two parts separately and lower-cased, so
every reducer goes through these helpers rather than splitting ad hoc.
"""

from __future__ import annotations


def repo_slug(owner: str, name: str) -> str:
    """Build a lower-cased ``owner/name`` slug.

    Examples
    --------
    >>> repo_slug("Acme", "Widgets")
    'acme/widgets'

    """
    return f"{owner}/{name}".lower()


def parse_repo_slug(slug: str) -> tuple[str, str]:
    """Parse a repository slug into lower-cased owner and name.

    Parameters
    ----------
    slug:
        Repository slug in ``owner/name`` format, as found in a webhook
        payload's ``repository.full_name``.

    Returns
    -------
    tuple[str, str]
        ``(owner, name)``, both lower-cased.

    Raises
    ------
    ValueError
        If the slug is not in ``owner/name`` format.

    Examples
    --------
    >>> parse_repo_slug("Acme/Widgets")
    ('acme', 'widgets')

    """
    if slug.count("/") != 1:
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)

    owner, name = slug.split("/")
    if not owner or not name:
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)

    return owner.lower(), name.lower()
