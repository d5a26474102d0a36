"""Provenance check for package publication events.

A package notification names a registry URL and, separately, the repository
owner, repository name and tag it was built from. Only a notification whose
URL is exactly the one those fields imply is forwarded; anything else is
inconsistent or spoofed registry metadata.

Usage
-----
>>> from ghrelay.webhooks.models import PackageDescriptor
>>> descriptor = PackageDescriptor(
...     name="svc",
...     namespace="acme",
...     version="sha256:abc",
...     url="GHCR.IO/ACME/svc:MAIN",
...     branch="main",
...     repository="acme/svc",
...     registry="ghcr.io",
...     sha256="abc",
... )
>>> PackagePublishValidator().validate(descriptor)
True

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

if typ.TYPE_CHECKING:
    from .models import PackageDescriptor

DEFAULT_URL_TEMPLATE = "{registry}/{namespace}/{name}:{branch}"


def expected_package_url(
    descriptor: PackageDescriptor, template: str = DEFAULT_URL_TEMPLATE
) -> str:
    """Return the case-folded URL ``descriptor`` should have been published at."""
    return template.format(
        registry=descriptor.registry,
        namespace=descriptor.namespace,
        name=descriptor.name,
        branch=descriptor.branch,
    ).casefold()


@dc.dataclass(frozen=True, slots=True)
class PackagePublishValidator:
    """Compare a package's reported URL with the one its metadata implies.

    Attributes
    ----------
    url_template
        Format string for the expected URL; receives ``registry``,
        ``namespace``, ``name`` and ``branch``.

    """

    url_template: str = DEFAULT_URL_TEMPLATE

    def expected_url(self, descriptor: PackageDescriptor) -> str:
        """Return the expected URL for ``descriptor``, case-folded."""
        return expected_package_url(descriptor, self.url_template)

    def validate(self, descriptor: PackageDescriptor) -> bool:
        """Return True when the reported URL matches, ignoring case."""
        return descriptor.url.casefold() == self.expected_url(descriptor)


__all__ = ["DEFAULT_URL_TEMPLATE", "PackagePublishValidator", "expected_package_url"]
