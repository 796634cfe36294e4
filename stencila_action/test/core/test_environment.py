"""Tests for stencila_action.core.environment module."""

from __future__ import annotations

from pathlib import Path

from stencila_action.core.environment import RunEnvironment


class TestFromEnviron:
    def test_reads_runner_variables(self) -> None:
        env = RunEnvironment.from_environ(
            {
                "GITHUB_REF": "refs/tags/v1.0.0",
                "GITHUB_SHA": "abcdef1234567890",
                "GITHUB_REPOSITORY": "acme/reports",
                "GITHUB_OUTPUT": "/tmp/out",
                "RUNNER_TOOL_CACHE": "/opt/hostedtoolcache",
                "GITHUB_ACTIONS": "true",
            }
        )
        assert env.sha == "abcdef1234567890"
        assert env.output_file == Path("/tmp/out")
        assert env.tool_cache == Path("/opt/hostedtoolcache")
        assert env.path_file is None
        assert env.in_actions is True

    def test_defaults(self) -> None:
        env = RunEnvironment.from_environ({})
        assert env.in_actions is False


class TestTag:
    def test_tag_ref(self) -> None:
        env = RunEnvironment(ref="refs/tags/v2.3.0-rc1")
        assert env.is_tag
        assert env.tag == "v2.3.0-rc1"

    def test_branch_ref(self) -> None:
        env = RunEnvironment(ref="refs/heads/main")
        assert not env.is_tag
        assert env.tag is None


class TestRepository:
    def test_owner_and_repo(self) -> None:
        env = RunEnvironment(repository="acme/reports")
        assert env.owner == "acme"
        assert env.repo == "reports"


class TestBuildIdentity:
    def test_prefers_sha(self) -> None:
        assert RunEnvironment(sha="abc", run_id="42").build_identity == "abc"

    def test_falls_back_to_run_id(self) -> None:
        assert RunEnvironment(run_id="42").build_identity == "42"

    def test_local(self) -> None:
        assert RunEnvironment().build_identity == "local"
