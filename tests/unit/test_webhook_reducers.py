"""Unit tests for webhook payload reducers."""

from __future__ import annotations

import typing as typ

import msgspec
import pytest

from ghrelay.webhooks.errors import PayloadShapeError
from ghrelay.webhooks.models import (
    AccountPayload,
    CheckRunPayload,
    CommitPayload,
    DeploymentPayload,
    DeploymentStatusPayload,
    OrganizationPayload,
    PackageDescriptor,
    PullRequestPayload,
    ReleasePayload,
    RepositoryPayload,
    WorkflowPayload,
    WorkflowRunPayload,
)
from ghrelay.webhooks.reducers import (
    GENERIC_EVENT_KEY,
    ReductionOptions,
    get_reducer,
    reduce_payload,
    registered_event_keys,
    resolve_reducer,
)
from tests.helpers.webhook_payloads import (
    DIGEST,
    make_check_run_payload,
    make_deployment_payload,
    make_deployment_status_payload,
    make_fork_payload,
    make_package_payload,
    make_pull_request_payload,
    make_push_payload,
    make_release_payload,
    make_sender,
    make_workflow_run_payload,
)


class TestRegistry:
    """Tests for reducer registration and lookup."""

    def test_known_event_keys_are_registered(self) -> None:
        """Every supported event key has a reducer."""
        expected = {
            "package",
            "commit",
            "repository",
            "pull_request",
            "release",
            "deployment",
            "deployment_status",
            "check_run",
            "workflow",
            "workflow_run",
            "organization",
            "sender",
        }
        assert expected <= set(registered_event_keys()), "missing reducers"

    @pytest.mark.parametrize(
        "event_key",
        [pytest.param(None, id="none"), pytest.param("gollum", id="unknown")],
    )
    def test_get_reducer_returns_none_for_unknown_keys(
        self, event_key: str | None
    ) -> None:
        """Unknown keys have no reducer."""
        assert get_reducer(event_key) is None, "expected no reducer"

    def test_resolve_falls_back_to_repository_reducer(self) -> None:
        """Unknown keys with a repository use the generic reducer."""
        reducer = resolve_reducer("forkee", make_fork_payload())
        assert reducer is get_reducer(GENERIC_EVENT_KEY), "expected generic reducer"

    def test_resolve_without_repository_is_none(self) -> None:
        """Unknown keys without a repository stay unreduced."""
        assert resolve_reducer("foo", {"foo": 1, "bar": 2}) is None


class TestReducePackage:
    """Tests for the package reducer."""

    def test_builds_descriptor(self) -> None:
        """A published container yields a complete descriptor."""
        result = reduce_payload("package", make_package_payload())
        assert result == PackageDescriptor(
            name="widgets",
            namespace="acme",
            version=f"sha256:{DIGEST}",
            url="ghcr.io/acme/widgets:main",
            branch="main",
            repository="acme/widgets",
            registry="ghcr.io",
            sha256=DIGEST,
        ), "unexpected package descriptor"

    def test_empty_tag_falls_back_to_target_commitish(self) -> None:
        """The branch comes from target_commitish when the tag is empty."""
        payload = make_package_payload(tag="", target_commitish="release")
        result = reduce_payload("package", payload)
        assert isinstance(result, PackageDescriptor), "expected a descriptor"
        assert result.branch == "release", "expected target_commitish"

    def test_missing_container_metadata_uses_target_commitish(self) -> None:
        """Non-container packages have no tag."""
        payload = make_package_payload(target_commitish="main")
        del payload["package"]["package_version"]["container_metadata"]
        result = reduce_payload("package", payload)
        assert isinstance(result, PackageDescriptor), "expected a descriptor"
        assert result.branch == "main", "expected target_commitish"

    def test_version_without_colon_is_its_own_digest(self) -> None:
        """sha256 is the last colon-separated segment of version."""
        payload = make_package_payload()
        payload["package"]["package_version"]["version"] = "1.4.2"
        result = reduce_payload("package", payload)
        assert isinstance(result, PackageDescriptor), "expected a descriptor"
        assert result.sha256 == "1.4.2", "expected the whole version"

    def test_registry_host_from_package_url_when_registry_absent(self) -> None:
        """Without registry metadata the host is the URL's first segment."""
        payload = make_package_payload()
        del payload["package"]["registry"]
        result = reduce_payload("package", payload)
        assert isinstance(result, PackageDescriptor), "expected a descriptor"
        assert result.registry == "ghcr.io", "expected host from package_url"

    @pytest.mark.parametrize(
        "registry_url",
        [
            pytest.param("https://[ghcr.io", id="unclosed-ipv6-bracket"),
            pytest.param("https://[::1/v2", id="bad-ipv6-host"),
        ],
    )
    def test_unparseable_registry_url_yields_none(self, registry_url: str) -> None:
        """A registry URL that cannot be parsed is a shape mismatch."""
        payload = make_package_payload()
        payload["package"]["registry"] = {"url": registry_url}
        assert reduce_payload("package", payload) is None, "expected no payload"

    def test_unparseable_registry_url_names_the_field(self) -> None:
        """The raw reducer reports the registry URL as mistyped."""
        payload = make_package_payload()
        payload["package"]["registry"] = {"url": "https://[ghcr.io"}
        reducer = get_reducer("package")
        assert reducer is not None, "package reducer must be registered"
        with pytest.raises(PayloadShapeError) as excinfo:
            reducer(payload, ReductionOptions())
        assert excinfo.value.path == "package.registry.url", "wrong path"

    @pytest.mark.parametrize(
        "path",
        [
            pytest.param(("package", "package_version"), id="package-version"),
            pytest.param(
                ("package", "package_version", "package_url"), id="package-url"
            ),
            pytest.param(("package", "package_version", "version"), id="version"),
            pytest.param(("repository", "owner"), id="owner"),
            pytest.param(("repository",), id="repository"),
        ],
    )
    def test_missing_required_field_yields_none(self, path: tuple[str, ...]) -> None:
        """Shape mismatches reduce to None without raising."""
        payload = make_package_payload()
        parent: dict[str, typ.Any] = payload
        for segment in path[:-1]:
            parent = parent[segment]
        del parent[path[-1]]
        assert reduce_payload("package", payload) is None, "expected no payload"

    def test_shape_error_names_the_missing_path(self) -> None:
        """The raw reducer reports which field was absent."""
        payload = make_package_payload()
        del payload["package"]["package_version"]
        reducer = get_reducer("package")
        assert reducer is not None, "package reducer must be registered"
        with pytest.raises(PayloadShapeError) as excinfo:
            reducer(payload, ReductionOptions())
        assert excinfo.value.path == "package.package_version", "wrong path"


class TestReduceCommit:
    """Tests for the push reducer."""

    def test_identity_fields(self) -> None:
        """Name, namespace and branch come from the push envelope."""
        result = reduce_payload("commit", make_push_payload("refs/heads/feature/x"))
        assert isinstance(result, CommitPayload), "expected a commit payload"
        assert (result.name, result.namespace) == ("widgets", "acme")
        assert result.branch == "x", "expected the last ref segment"
        assert result.ref == "refs/heads/feature/x", "expected the full ref"

    def test_url_fields_are_stripped_from_commits(self) -> None:
        """Commit blobs lose fields whose path contains _url."""
        payload = make_push_payload()
        payload["commits"][0]["author"]["avatar_url"] = "https://example.com/a.png"
        result = reduce_payload("commit", payload)
        assert isinstance(result, CommitPayload), "expected a commit payload"
        author = result.commits[0]["author"]
        assert "avatar_url" not in author, "expected avatar_url to be stripped"
        assert author["username"] == "octocat", "unmarked fields are kept"
        assert result.commits[0]["added"] == ["src/widgets/align.py"]

    def test_no_markers_keeps_blobs_whole(self) -> None:
        """An empty marker tuple disables stripping."""
        payload = make_push_payload()
        payload["head_commit"]["tree_url"] = "https://example.com/tree"
        result = reduce_payload(
            "commit", payload, ReductionOptions(strip_markers=())
        )
        assert isinstance(result, CommitPayload), "expected a commit payload"
        assert result.head_commit is not None, "expected a head commit"
        assert result.head_commit["tree_url"] == "https://example.com/tree"

    def test_custom_marker(self) -> None:
        """Configured markers replace the default."""
        result = reduce_payload(
            "commit", make_push_payload(), ReductionOptions(strip_markers=("author",))
        )
        assert isinstance(result, CommitPayload), "expected a commit payload"
        assert "author" not in result.commits[0], "expected author to be stripped"

    def test_owner_login_is_used_without_owner_name(self) -> None:
        """Only push payloads carry owner.name."""
        payload = make_push_payload()
        del payload["repository"]["owner"]["name"]
        result = reduce_payload("commit", payload)
        assert isinstance(result, CommitPayload), "expected a commit payload"
        assert result.namespace == "acme", "expected the owner login"

    def test_envelope_fields_are_dropped(self) -> None:
        """Nothing outside the whitelist reaches the canonical payload."""
        result = reduce_payload("commit", make_push_payload())
        encoded = msgspec.to_builtins(result)
        assert set(encoded) == {
            "name",
            "namespace",
            "branch",
            "ref",
            "commits",
            "head_commit",
        }, "unexpected canonical fields"

    def test_missing_ref_yields_none(self) -> None:
        """A commit event needs its ref."""
        payload = make_push_payload()
        del payload["ref"]
        assert reduce_payload("commit", payload) is None, "expected no payload"


class TestReduceOtherEvents:
    """Tests for the remaining reducers."""

    def test_pull_request(self) -> None:
        """Pull requests keep their title, state, refs and author."""
        result = reduce_payload("pull_request", make_pull_request_payload())
        assert isinstance(result, PullRequestPayload), "expected a pull request"
        assert (result.title, result.state, result.number) == (
            "Add release checklist",
            "open",
            42,
        )
        assert result.head is not None, "expected a head ref"
        assert result.head.ref == "release-checklist", "unexpected head ref"
        assert result.user is not None, "expected the author"
        assert result.user.login == "octocat", "unexpected author"

    def test_pull_request_without_title_yields_none(self) -> None:
        """title is required."""
        payload = make_pull_request_payload()
        del payload["pull_request"]["title"]
        assert reduce_payload("pull_request", payload) is None

    def test_release(self) -> None:
        """Releases keep their tag, repository and assets."""
        result = reduce_payload("release", make_release_payload())
        assert isinstance(result, ReleasePayload), "expected a release"
        assert result.tag_name == "v1.2.0", "unexpected tag"
        assert result.repository == "Acme/Widgets", "unexpected repository"
        assert len(result.assets) == 1, "expected one asset"
        assert result.assets[0].name == "widgets-1.2.0.tar.gz", "unexpected asset"
        assert "browser_download_url" not in msgspec.to_builtins(result.assets[0])

    def test_deployment(self) -> None:
        """Deployments carry their envelope repository and sender."""
        result = reduce_payload("deployment", make_deployment_payload())
        assert isinstance(result, DeploymentPayload), "expected a deployment"
        assert result.environment == "production", "unexpected environment"
        assert result.repository == RepositoryPayload(
            name="widgets", namespace="acme"
        ), "unexpected repository"

    def test_deployment_status(self) -> None:
        """Deployment statuses embed their deployment."""
        result = reduce_payload("deployment_status", make_deployment_status_payload())
        assert isinstance(result, DeploymentStatusPayload), "expected a status"
        assert result.state == "success", "unexpected state"
        assert result.deployment is not None, "expected the deployment"
        assert result.deployment.id == 87, "unexpected deployment id"

    def test_check_run(self) -> None:
        """Check runs keep status and conclusion."""
        result = reduce_payload("check_run", make_check_run_payload())
        assert isinstance(result, CheckRunPayload), "expected a check run"
        assert (result.status, result.conclusion) == ("completed", "success")

    def test_workflow_run(self) -> None:
        """Workflow runs keep branch, run number and conclusion."""
        result = reduce_payload("workflow_run", make_workflow_run_payload())
        assert isinstance(result, WorkflowRunPayload), "expected a workflow run"
        assert (result.head_branch, result.run_number) == ("main", 562)

    def test_workflow_run_with_string_id_yields_none(self) -> None:
        """Required ids must be integers."""
        payload = make_workflow_run_payload()
        payload["workflow_run"]["id"] = "30433642"
        assert reduce_payload("workflow_run", payload) is None

    def test_workflow(self) -> None:
        """Workflow events keep the definition identity and its context."""
        source = make_workflow_run_payload()
        payload = {
            "action": "disabled",
            "workflow": source["workflow"],
            "repository": source["repository"],
            "sender": source["sender"],
        }
        assert reduce_payload("workflow", payload) == WorkflowPayload(
            id=159038,
            name="Build",
            path=".github/workflows/build.yml",
            state="active",
            repository=RepositoryPayload(name="widgets", namespace="acme"),
            sender=AccountPayload(login="octocat", id=583231, type="User"),
        ), "unexpected workflow payload"

    def test_workflow_drops_unlisted_fields(self) -> None:
        """Only whitelisted workflow fields survive reduction."""
        payload = {"workflow": {"id": 1, "badge_url": "https://x", "node_id": "W"}}
        result = reduce_payload("workflow", payload)
        assert result == WorkflowPayload(id=1), "expected only the id"

    def test_workflow_without_id_yields_none(self) -> None:
        """The workflow id is required."""
        payload = {"workflow": {"name": "Build", "path": "build.yml"}}
        assert reduce_payload("workflow", payload) is None, "expected no payload"

    def test_sender(self) -> None:
        """Sender-led payloads reduce to the account identity."""
        payload = {"sender": make_sender(), "hook_id": 12}
        assert reduce_payload("sender", payload) == AccountPayload(
            login="octocat", id=583231, type="User"
        ), "unexpected account"

    @pytest.mark.parametrize(
        "sender",
        [
            pytest.param({"id": 583231, "type": "User"}, id="missing-login"),
            pytest.param({"login": None, "id": 1}, id="null-login"),
            pytest.param({"login": 7}, id="non-string-login"),
            pytest.param("octocat", id="not-a-mapping"),
        ],
    )
    def test_sender_without_login_yields_none(self, sender: object) -> None:
        """The sender login is required."""
        assert reduce_payload("sender", {"sender": sender}) is None

    def test_organization(self) -> None:
        """Organisation events reduce to the organisation identity."""
        payload = {"organization": {"login": "acme", "id": 5, "url": "x"}}
        assert reduce_payload("organization", payload) == OrganizationPayload(
            login="acme", id=5
        ), "unexpected organisation"

    def test_generic_repository_fallback(self) -> None:
        """Unknown events with a repository reduce to its identity."""
        result = reduce_payload("forkee", make_fork_payload())
        assert result == RepositoryPayload(name="widgets", namespace="acme")

    def test_generic_repository_with_bad_slug_yields_none(self) -> None:
        """A malformed full_name is a shape mismatch."""
        payload = {"star": {}, "repository": {"full_name": "not-a-slug"}}
        assert reduce_payload("star", payload) is None, "expected no payload"


@pytest.mark.parametrize(
    ("event_key", "payload"),
    [
        pytest.param("foo", {"foo": 1, "bar": 2}, id="unknown-key"),
        pytest.param(None, {}, id="no-key"),
        pytest.param("package", None, id="non-mapping"),
        pytest.param("package", ["package"], id="list"),
    ],
)
def test_reduce_payload_returns_none(event_key: str | None, payload: object) -> None:
    """Unusable input reduces to None rather than raising."""
    assert reduce_payload(event_key, payload) is None, "expected no payload"


def test_reduction_does_not_mutate_input() -> None:
    """Reducers read the raw payload without changing it."""
    payload = make_push_payload()
    payload["commits"][0]["author"]["avatar_url"] = "https://example.com/a.png"
    snapshot = msgspec.json.encode(payload)
    reduce_payload("commit", payload)
    assert msgspec.json.encode(payload) == snapshot, "payload must not change"
