"""Whitelist reducers turning raw webhook payloads into canonical payloads.

Each event key maps to one registered reducer. A reducer reads only the
fields its canonical struct declares; nested accounts, repositories and refs
go through their own sub-reducers, so nothing from the provider is copied
verbatim except the commit blobs of a push, which are scrubbed of URL fields
first.
"""

from __future__ import annotations

import collections.abc as cabc
import copy
import dataclasses as dc
import functools
import typing as typ
from urllib.parse import urlsplit

from ghrelay.common.flatten import DEFAULT_DELIMITER, strip_fields_by_key_marker
from ghrelay.common.slug import parse_repo_slug, repo_slug

from .errors import PayloadShapeError
from .models import (
    AccountPayload,
    CheckRunPayload,
    CommitPayload,
    DeploymentPayload,
    DeploymentStatusPayload,
    GitRefPayload,
    OrganizationPayload,
    PackageDescriptor,
    PullRequestPayload,
    ReleaseAssetPayload,
    ReleasePayload,
    RepositoryPayload,
    WorkflowPayload,
    WorkflowRunPayload,
)

if typ.TYPE_CHECKING:
    from .models import CanonicalPayload

RawPayload: typ.TypeAlias = cabc.Mapping[str, typ.Any]

DEFAULT_STRIP_MARKERS: tuple[str, ...] = ("_url",)
GENERIC_EVENT_KEY = "repository"


@dc.dataclass(frozen=True, slots=True)
class ReductionOptions:
    """Field filtering applied to opaque blobs kept in canonical payloads.

    Attributes
    ----------
    strip_markers
        Substrings; any blob field whose dotted path contains one is removed.
        An empty tuple keeps blobs whole.
    delimiter
        Path separator used while filtering.

    """

    strip_markers: tuple[str, ...] = DEFAULT_STRIP_MARKERS
    delimiter: str = DEFAULT_DELIMITER


DEFAULT_REDUCTION_OPTIONS = ReductionOptions()

Reducer: typ.TypeAlias = cabc.Callable[[RawPayload, ReductionOptions], "CanonicalPayload"]
_registry: dict[str, Reducer] = {}


def register(event_key: str) -> cabc.Callable[[Reducer], Reducer]:
    """Register a reducer for ``event_key``."""

    def _inner(func: Reducer) -> Reducer:
        _registry[event_key] = func
        return func

    return _inner


def get_reducer(event_key: str | None) -> Reducer | None:
    """Return the reducer registered for ``event_key`` if present."""
    if event_key is None:
        return None
    return _registry.get(event_key)


def registered_event_keys() -> tuple[str, ...]:
    """Return every event key with a registered reducer."""
    return tuple(_registry)


def resolve_reducer(event_key: str | None, payload: object) -> Reducer | None:
    """Return the reducer to apply, falling back to the generic repository one.

    The generic reducer applies to any payload that carries a ``repository``
    but whose event key has no reducer of its own.
    """
    reducer = get_reducer(event_key)
    if reducer is not None:
        return reducer
    if isinstance(payload, cabc.Mapping) and payload.get("repository") is not None:
        return _registry[GENERIC_EVENT_KEY]
    return None


def reduce_payload(
    event_key: str | None,
    payload: object,
    options: ReductionOptions | None = None,
) -> CanonicalPayload | None:
    """Reduce ``payload`` to its canonical form.

    Returns ``None`` for unknown event keys, for non-mapping payloads, and
    when a required field is absent. Never raises for payload content.
    """
    if not isinstance(payload, cabc.Mapping):
        return None
    reducer = resolve_reducer(event_key, payload)
    if reducer is None:
        return None
    try:
        return reducer(payload, options or DEFAULT_REDUCTION_OPTIONS)
    except PayloadShapeError:
        return None


@dc.dataclass(frozen=True, slots=True)
class _Fields:
    """Typed accessors over one mapping level of a raw payload."""

    source: RawPayload
    path: str = ""

    def path_of(self, key: str) -> str:
        return f"{self.path}.{key}" if self.path else key

    def require(self, key: str) -> typ.Any:  # noqa: ANN401
        value = self.source.get(key)
        if value is None:
            raise PayloadShapeError.missing(self.path_of(key))
        return value

    def child(self, key: str) -> _Fields:
        value = self.require(key)
        if not isinstance(value, cabc.Mapping):
            raise PayloadShapeError.wrong_type(self.path_of(key), "mapping")
        return _Fields(value, self.path_of(key))

    def optional_child(self, key: str) -> _Fields | None:
        value = self.source.get(key)
        if not isinstance(value, cabc.Mapping):
            return None
        return _Fields(value, self.path_of(key))

    def text(self, key: str) -> str:
        value = self.require(key)
        if not isinstance(value, str):
            raise PayloadShapeError.wrong_type(self.path_of(key), "string")
        return value

    def integer(self, key: str) -> int:
        value = self.require(key)
        if isinstance(value, bool) or not isinstance(value, int):
            raise PayloadShapeError.wrong_type(self.path_of(key), "integer")
        return value

    def opt_text(self, key: str) -> str | None:
        value = self.source.get(key)
        return value if isinstance(value, str) else None

    def opt_int(self, key: str) -> int | None:
        value = self.source.get(key)
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        return value

    def opt_bool(self, key: str) -> bool | None:
        value = self.source.get(key)
        return value if isinstance(value, bool) else None

    def children(self, key: str) -> list[_Fields]:
        value = self.source.get(key)
        if not isinstance(value, list):
            return []
        return [
            _Fields(item, f"{self.path_of(key)}.{index}")
            for index, item in enumerate(value)
            if isinstance(item, cabc.Mapping)
        ]


def _scrub(blob: RawPayload, options: ReductionOptions) -> dict[str, typ.Any]:
    """Return a copy of ``blob`` without fields matching the strip markers."""
    return functools.reduce(
        lambda acc, marker: strip_fields_by_key_marker(
            acc, marker, delimiter=options.delimiter
        ),
        options.strip_markers,
        copy.deepcopy(dict(blob)),
    )


def _account_from(fields: _Fields) -> AccountPayload:
    return AccountPayload(
        login=fields.text("login"),
        id=fields.opt_int("id"),
        type=fields.opt_text("type"),
    )


def _account(fields: _Fields | None) -> AccountPayload | None:
    return None if fields is None else _account_from(fields)


def _repository(fields: _Fields) -> RepositoryPayload:
    full_name = fields.text("full_name")
    try:
        namespace, name = parse_repo_slug(full_name)
    except ValueError as exc:
        raise PayloadShapeError.wrong_type(
            fields.path_of("full_name"), "owner/name slug"
        ) from exc
    return RepositoryPayload(name=name, namespace=namespace)


def _optional_repository(fields: _Fields | None) -> RepositoryPayload | None:
    return None if fields is None else _repository(fields)


def _git_ref(fields: _Fields | None) -> GitRefPayload | None:
    if fields is None:
        return None
    return GitRefPayload(
        ref=fields.opt_text("ref"),
        sha=fields.opt_text("sha"),
        label=fields.opt_text("label"),
    )


def _release_asset(fields: _Fields) -> ReleaseAssetPayload:
    return ReleaseAssetPayload(
        id=fields.opt_int("id"),
        name=fields.opt_text("name"),
        label=fields.opt_text("label"),
        content_type=fields.opt_text("content_type"),
        state=fields.opt_text("state"),
        size=fields.opt_int("size"),
        download_count=fields.opt_int("download_count"),
    )


def _deployment(
    fields: _Fields, *, envelope: _Fields | None = None
) -> DeploymentPayload:
    return DeploymentPayload(
        id=fields.integer("id"),
        sha=fields.opt_text("sha"),
        ref=fields.opt_text("ref"),
        task=fields.opt_text("task"),
        environment=fields.opt_text("environment"),
        description=fields.opt_text("description"),
        created_at=fields.opt_text("created_at"),
        updated_at=fields.opt_text("updated_at"),
        creator=_account(fields.optional_child("creator")),
        repository=None
        if envelope is None
        else _optional_repository(envelope.optional_child("repository")),
        sender=None
        if envelope is None
        else _account(envelope.optional_child("sender")),
    )


def _registry_host(package: _Fields, package_url: str) -> str:
    registry = package.optional_child("registry")
    registry_url = None if registry is None else registry.opt_text("url")
    if registry_url:
        try:
            parts = urlsplit(registry_url)
        except ValueError as exc:
            raise PayloadShapeError.wrong_type(
                package.path_of("registry.url"), "URL"
            ) from exc
        return (parts.netloc or parts.path).strip("/").lower()
    return package_url.split("/", 1)[0].lower()


@register("package")
def reduce_package(payload: RawPayload, options: ReductionOptions) -> PackageDescriptor:
    """Reduce a registry package publication."""
    del options
    fields = _Fields(payload)
    repository = fields.child("repository")
    package = fields.child("package")
    version = package.child("package_version")

    container = version.optional_child("container_metadata")
    tag = None if container is None else container.optional_child("tag")
    tag_name = None if tag is None else tag.opt_text("name")
    branch = tag_name or version.text("target_commitish")

    version_string = version.text("version")
    package_url = version.text("package_url")
    name = repository.text("name").lower()
    namespace = repository.child("owner").text("login").lower()
    full_name = repository.opt_text("full_name") or repo_slug(namespace, name)

    return PackageDescriptor(
        name=name,
        namespace=namespace,
        version=version_string,
        url=package_url,
        branch=branch,
        repository=full_name.lower(),
        registry=_registry_host(package, package_url),
        sha256=version_string.rsplit(":", 1)[-1],
    )


@register("commit")
def reduce_commit(payload: RawPayload, options: ReductionOptions) -> CommitPayload:
    """Reduce a push."""
    fields = _Fields(payload)
    repository = fields.child("repository")
    owner = repository.child("owner")
    # Push payloads name the owner; other events only carry the login.
    namespace = owner.opt_text("name") or owner.text("login")
    ref = fields.text("ref")
    head_commit = fields.optional_child("head_commit")

    return CommitPayload(
        name=repository.text("name").lower(),
        namespace=namespace.lower(),
        branch=ref.rsplit("/", 1)[-1],
        ref=ref,
        commits=[
            _scrub(commit.source, options) for commit in fields.children("commits")
        ],
        head_commit=None
        if head_commit is None
        else _scrub(head_commit.source, options),
    )


@register(GENERIC_EVENT_KEY)
def reduce_repository(
    payload: RawPayload, options: ReductionOptions
) -> RepositoryPayload:
    """Reduce any payload carrying a repository to its identity."""
    del options
    return _repository(_Fields(payload).child("repository"))


@register("pull_request")
def reduce_pull_request(
    payload: RawPayload, options: ReductionOptions
) -> PullRequestPayload:
    """Reduce pull request activity."""
    del options
    fields = _Fields(payload)
    pull_request = fields.child("pull_request")
    number = pull_request.opt_int("number")
    return PullRequestPayload(
        title=pull_request.text("title"),
        state=pull_request.text("state"),
        number=number if number is not None else fields.opt_int("number"),
        url=pull_request.opt_text("url"),
        html_url=pull_request.opt_text("html_url"),
        merged=pull_request.opt_bool("merged"),
        draft=pull_request.opt_bool("draft"),
        head=_git_ref(pull_request.optional_child("head")),
        base=_git_ref(pull_request.optional_child("base")),
        body=pull_request.opt_text("body"),
        user=_account(pull_request.optional_child("user")),
    )


@register("release")
def reduce_release(payload: RawPayload, options: ReductionOptions) -> ReleasePayload:
    """Reduce release activity."""
    del options
    fields = _Fields(payload)
    release = fields.child("release")
    repository = fields.optional_child("repository")
    return ReleasePayload(
        tag_name=release.text("tag_name"),
        name=release.opt_text("name"),
        repository=None if repository is None else repository.opt_text("full_name"),
        url=release.opt_text("url"),
        html_url=release.opt_text("html_url"),
        assets=tuple(_release_asset(asset) for asset in release.children("assets")),
        body=release.opt_text("body"),
        draft=release.opt_bool("draft"),
        prerelease=release.opt_bool("prerelease"),
        published_at=release.opt_text("published_at"),
        author=_account(release.optional_child("author")),
    )


@register("deployment")
def reduce_deployment(
    payload: RawPayload, options: ReductionOptions
) -> DeploymentPayload:
    """Reduce deployment activity."""
    del options
    fields = _Fields(payload)
    return _deployment(fields.child("deployment"), envelope=fields)


@register("deployment_status")
def reduce_deployment_status(
    payload: RawPayload, options: ReductionOptions
) -> DeploymentStatusPayload:
    """Reduce a deployment status change."""
    del options
    fields = _Fields(payload)
    status = fields.child("deployment_status")
    deployment = fields.optional_child("deployment")
    return DeploymentStatusPayload(
        id=status.integer("id"),
        state=status.opt_text("state"),
        description=status.opt_text("description"),
        environment=status.opt_text("environment"),
        target_url=status.opt_text("target_url"),
        created_at=status.opt_text("created_at"),
        updated_at=status.opt_text("updated_at"),
        creator=_account(status.optional_child("creator")),
        deployment=None if deployment is None else _deployment(deployment),
        repository=_optional_repository(fields.optional_child("repository")),
        sender=_account(fields.optional_child("sender")),
    )


@register("check_run")
def reduce_check_run(payload: RawPayload, options: ReductionOptions) -> CheckRunPayload:
    """Reduce check run activity."""
    del options
    fields = _Fields(payload)
    check_run = fields.child("check_run")
    return CheckRunPayload(
        id=check_run.integer("id"),
        name=check_run.opt_text("name"),
        head_sha=check_run.opt_text("head_sha"),
        status=check_run.opt_text("status"),
        conclusion=check_run.opt_text("conclusion"),
        started_at=check_run.opt_text("started_at"),
        completed_at=check_run.opt_text("completed_at"),
        html_url=check_run.opt_text("html_url"),
        repository=_optional_repository(fields.optional_child("repository")),
        sender=_account(fields.optional_child("sender")),
    )


@register("workflow")
def reduce_workflow(payload: RawPayload, options: ReductionOptions) -> WorkflowPayload:
    """Reduce workflow activity."""
    del options
    fields = _Fields(payload)
    workflow = fields.child("workflow")
    return WorkflowPayload(
        id=workflow.integer("id"),
        name=workflow.opt_text("name"),
        path=workflow.opt_text("path"),
        state=workflow.opt_text("state"),
        created_at=workflow.opt_text("created_at"),
        updated_at=workflow.opt_text("updated_at"),
        repository=_optional_repository(fields.optional_child("repository")),
        sender=_account(fields.optional_child("sender")),
    )


@register("workflow_run")
def reduce_workflow_run(
    payload: RawPayload, options: ReductionOptions
) -> WorkflowRunPayload:
    """Reduce workflow run activity."""
    del options
    fields = _Fields(payload)
    run = fields.child("workflow_run")
    return WorkflowRunPayload(
        id=run.integer("id"),
        name=run.opt_text("name"),
        head_branch=run.opt_text("head_branch"),
        head_sha=run.opt_text("head_sha"),
        run_number=run.opt_int("run_number"),
        event=run.opt_text("event"),
        status=run.opt_text("status"),
        conclusion=run.opt_text("conclusion"),
        workflow_id=run.opt_int("workflow_id"),
        created_at=run.opt_text("created_at"),
        updated_at=run.opt_text("updated_at"),
        html_url=run.opt_text("html_url"),
        repository=_optional_repository(fields.optional_child("repository")),
        sender=_account(fields.optional_child("sender")),
    )


@register("organization")
def reduce_organization(
    payload: RawPayload, options: ReductionOptions
) -> OrganizationPayload:
    """Reduce organisation activity."""
    del options
    organization = _Fields(payload).child("organization")
    return OrganizationPayload(
        login=organization.text("login"),
        id=organization.opt_int("id"),
        description=organization.opt_text("description"),
    )


@register("sender")
def reduce_sender(payload: RawPayload, options: ReductionOptions) -> AccountPayload:
    """Reduce a payload led by its sender."""
    del options
    return _account_from(_Fields(payload).child("sender"))


__all__ = [
    "DEFAULT_REDUCTION_OPTIONS",
    "DEFAULT_STRIP_MARKERS",
    "GENERIC_EVENT_KEY",
    "Reducer",
    "ReductionOptions",
    "get_reducer",
    "reduce_payload",
    "register",
    "registered_event_keys",
    "resolve_reducer",
]
