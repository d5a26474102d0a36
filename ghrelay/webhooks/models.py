"""Canonical event structures produced from provider webhooks.

Every canonical payload is a whitelist projection of the raw webhook: the
struct fields below are the complete vocabulary downstream consumers see,
whatever provider field supplied each value.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import msgspec

UNKNOWN_SEGMENT = "unknown"


class AccountPayload(msgspec.Struct, kw_only=True, frozen=True):
    """A user or organisation account (sender, owner, creator, author).

    Also the canonical payload for ``sender`` events.
    """

    login: str
    id: int | None = None
    type: str | None = None


class RepositoryPayload(msgspec.Struct, kw_only=True, frozen=True):
    """Lower-cased repository identity parsed from ``full_name``."""

    name: str
    namespace: str


class GitRefPayload(msgspec.Struct, kw_only=True, frozen=True):
    """Head or base reference of a pull request."""

    ref: str | None = None
    sha: str | None = None
    label: str | None = None


class ReleaseAssetPayload(msgspec.Struct, kw_only=True, frozen=True):
    """A file attached to a release."""

    id: int | None = None
    name: str | None = None
    label: str | None = None
    content_type: str | None = None
    state: str | None = None
    size: int | None = None
    download_count: int | None = None


class CommitPayload(msgspec.Struct, kw_only=True, frozen=True):
    """Commits pushed to a branch.

    Attributes
    ----------
    name
        Repository name, lower-cased.
    namespace
        Repository owner, lower-cased.
    branch
        Last path segment of ``ref``.
    ref
        Full git reference as sent by the provider.
    commits
        Pushed commits, with URL fields stripped.
    head_commit
        The commit the ref now points at, with URL fields stripped.

    """

    name: str
    namespace: str
    branch: str
    ref: str
    commits: list[dict[str, typ.Any]] = msgspec.field(default_factory=list)
    head_commit: dict[str, typ.Any] | None = None


class PackageDescriptor(msgspec.Struct, kw_only=True, frozen=True):
    """A package version published to a registry.

    Attributes
    ----------
    name
        Repository name, lower-cased.
    namespace
        Repository owner login, lower-cased.
    version
        Version string reported by the registry (``sha256:<digest>`` for
        container images).
    url
        Package URL reported by the registry.
    branch
        Container tag, or the target commitish when the tag is empty.
    repository
        ``owner/name`` slug of the source repository, lower-cased.
    registry
        Registry host, lower-cased (for example ``ghcr.io``).
    sha256
        Digest segment of ``version``.

    """

    name: str
    namespace: str
    version: str
    url: str
    branch: str
    repository: str
    registry: str
    sha256: str


class PullRequestPayload(msgspec.Struct, kw_only=True, frozen=True):
    """Pull request activity."""

    title: str
    state: str
    number: int | None = None
    url: str | None = None
    html_url: str | None = None
    merged: bool | None = None
    draft: bool | None = None
    head: GitRefPayload | None = None
    base: GitRefPayload | None = None
    body: str | None = None
    user: AccountPayload | None = None


class ReleasePayload(msgspec.Struct, kw_only=True, frozen=True):
    """Release activity."""

    tag_name: str
    name: str | None = None
    repository: str | None = None
    url: str | None = None
    html_url: str | None = None
    assets: tuple[ReleaseAssetPayload, ...] = ()
    body: str | None = None
    draft: bool | None = None
    prerelease: bool | None = None
    published_at: str | None = None
    author: AccountPayload | None = None


class DeploymentPayload(msgspec.Struct, kw_only=True, frozen=True):
    """Deployment activity."""

    id: int
    sha: str | None = None
    ref: str | None = None
    task: str | None = None
    environment: str | None = None
    description: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    creator: AccountPayload | None = None
    repository: RepositoryPayload | None = None
    sender: AccountPayload | None = None


class DeploymentStatusPayload(msgspec.Struct, kw_only=True, frozen=True):
    """Deployment status change."""

    id: int
    state: str | None = None
    description: str | None = None
    environment: str | None = None
    target_url: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    creator: AccountPayload | None = None
    deployment: DeploymentPayload | None = None
    repository: RepositoryPayload | None = None
    sender: AccountPayload | None = None


class CheckRunPayload(msgspec.Struct, kw_only=True, frozen=True):
    """Check run activity."""

    id: int
    name: str | None = None
    head_sha: str | None = None
    status: str | None = None
    conclusion: str | None = None
    started_at: str | None = None
    completed_at: str | None = None
    html_url: str | None = None
    repository: RepositoryPayload | None = None
    sender: AccountPayload | None = None


class WorkflowPayload(msgspec.Struct, kw_only=True, frozen=True):
    """Workflow definition activity."""

    id: int
    name: str | None = None
    path: str | None = None
    state: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    repository: RepositoryPayload | None = None
    sender: AccountPayload | None = None


class WorkflowRunPayload(msgspec.Struct, kw_only=True, frozen=True):
    """Workflow run activity."""

    id: int
    name: str | None = None
    head_branch: str | None = None
    head_sha: str | None = None
    run_number: int | None = None
    event: str | None = None
    status: str | None = None
    conclusion: str | None = None
    workflow_id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None
    html_url: str | None = None
    repository: RepositoryPayload | None = None
    sender: AccountPayload | None = None


class OrganizationPayload(msgspec.Struct, kw_only=True, frozen=True):
    """Organisation activity."""

    login: str
    id: int | None = None
    description: str | None = None


CanonicalPayload: typ.TypeAlias = (
    AccountPayload
    | CheckRunPayload
    | CommitPayload
    | DeploymentPayload
    | DeploymentStatusPayload
    | OrganizationPayload
    | PackageDescriptor
    | PullRequestPayload
    | ReleasePayload
    | RepositoryPayload
    | WorkflowPayload
    | WorkflowRunPayload
)


@dc.dataclass(frozen=True, slots=True)
class CanonicalEvent:
    """Classified and reduced webhook.

    ``payload`` is ``None`` when the webhook was recognised but no reducer
    could produce a canonical payload for it.
    """

    action_name: str
    event_key: str | None
    payload: CanonicalPayload | None = None

    def event_name(self, provider: str) -> str:
        """Return ``<provider>.<event_key>.<action_name>``."""
        key = self.event_key or UNKNOWN_SEGMENT
        return f"{provider}.{key}.{self.action_name}"
