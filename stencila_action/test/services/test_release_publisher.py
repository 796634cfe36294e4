"""Tests for services/release/publisher.py."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from stencila_action.core.result import Err, Ok, Result
from stencila_action.output.console import MockConsole
from stencila_action.services.release.context import ReleaseContext
from stencila_action.services.release.errors import ReleaseError
from stencila_action.services.release.host import CreatedRelease, NewRelease
from stencila_action.services.release.publisher import ReleasePublisher, ReleaseSettings
from stencila_action.services.release.templates import TemplateRenderer
from stencila_action.tools.runner import CommandOutcome

CONTEXT = ReleaseContext(
    tag="v2.3.0-rc1",
    commit="abcdef0123456789",
    owner="acme",
    repo="reports",
    workflow="Publish",
    build="7",
    now=datetime(2026, 10, 19, 12, 0, tzinfo=UTC),
)


@dataclass
class FakeHost:
    create_error: ReleaseError | None = None
    failing_assets: set[str] = field(default_factory=set)
    created: list[NewRelease] = field(default_factory=list)
    uploaded: list[tuple[str, bytes]] = field(default_factory=list)

    def create_release(self, release: NewRelease) -> Result[CreatedRelease, ReleaseError]:
        self.created.append(release)
        if self.create_error is not None:
            return Err(self.create_error)
        return Ok(CreatedRelease(id=99, url="https://github.com/acme/reports/releases/99"))

    def upload_asset(
        self, *, owner: str, repo: str, release_id: int, name: str, data: bytes
    ) -> Result[None, ReleaseError]:
        if name in self.failing_assets:
            return Err(ReleaseError(kind="upload_failed", message=f"Failed to upload asset {name}"))
        self.uploaded.append((name, data))
        return Ok(None)


@dataclass
class ScriptedRunner:
    """Renders by returning canned output per stdin/file argument."""

    outputs: dict[str, CommandOutcome] = field(default_factory=dict)
    calls: list[list[str]] = field(default_factory=list)

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        cwd: Path,
        capture: bool = False,
        stdin: str | None = None,
    ) -> CommandOutcome:
        self.calls.append(list(args))
        key = stdin if stdin is not None else args[0]
        return self.outputs.get(key, CommandOutcome(1, "", "no such template"))


def _publisher(
    tmp_path: Path,
    settings: ReleaseSettings,
    host: FakeHost,
    console: MockConsole,
    runner: ScriptedRunner | None = None,
) -> tuple[ReleasePublisher, list[str]]:
    tokens: list[str] = []

    def factory(token: str) -> FakeHost:
        tokens.append(token)
        return host

    renderer = TemplateRenderer(
        runner=runner or ScriptedRunner(),  # type: ignore[arg-type]
        workdir=tmp_path,
        console=console,
    )
    publisher = ReleasePublisher(
        settings=settings,
        renderer=renderer,
        host_factory=factory,
        workdir=tmp_path,
        console=console,
    )
    return publisher, tokens


class TestActivation:
    def test_disabled(self, tmp_path: Path) -> None:
        host = FakeHost()
        publisher, _ = _publisher(tmp_path, ReleaseSettings(), host, MockConsole())
        assert publisher.publish(CONTEXT) is None
        assert host.created == []

    def test_not_a_tag(self, tmp_path: Path) -> None:
        console = MockConsole()
        host = FakeHost()
        settings = ReleaseSettings(enabled=True, token="t")
        publisher, _ = _publisher(tmp_path, settings, host, console)

        assert publisher.publish(None) is None
        assert host.created == []
        assert console.find("Not a tag push")

    def test_missing_token_warns(self, tmp_path: Path) -> None:
        console = MockConsole()
        host = FakeHost()
        publisher, tokens = _publisher(
            tmp_path, ReleaseSettings(enabled=True), host, console
        )

        assert publisher.publish(CONTEXT) is None
        assert tokens == []
        assert console.find("No GitHub token provided")


class TestPublish:
    def test_defaults_for_rc_tag(self, tmp_path: Path) -> None:
        """No templates anywhere: name is the tag, body empty, prerelease set."""
        host = FakeHost()
        runner = ScriptedRunner()
        publisher, tokens = _publisher(
            tmp_path, ReleaseSettings(enabled=True, token="ghs_x"), host, MockConsole(), runner
        )

        outcome = publisher.publish(CONTEXT)

        assert outcome is not None
        assert tokens == ["ghs_x"]
        assert host.created == [
            NewRelease(
                owner="acme",
                repo="reports",
                tag="v2.3.0-rc1",
                name="v2.3.0-rc1",
                body="",
                draft=False,
                prerelease=True,
            )
        ]
        assert runner.calls == []

    def test_detected_templates_rendered(self, tmp_path: Path) -> None:
        (tmp_path / "RELEASE_NAME.md").write_text("Report {{ date }}")
        (tmp_path / "release-notes.md").write_text("Built from {{ commit }}")
        runner = ScriptedRunner(
            outputs={
                "RELEASE_NAME.md": CommandOutcome(0, "Report 2026-10-19\n"),
                "release-notes.md": CommandOutcome(0, "Built from abcdef0\n"),
            }
        )
        host = FakeHost()
        publisher, _ = _publisher(
            tmp_path, ReleaseSettings(enabled=True, token="t"), host, MockConsole(), runner
        )

        outcome = publisher.publish(CONTEXT)

        assert outcome is not None
        assert outcome.name == "Report 2026-10-19"
        assert host.created[0].body == "Built from abcdef0"
        assert "commit=abcdef0" in runner.calls[0]

    def test_asset_filename_template(self, tmp_path: Path) -> None:
        (tmp_path / "out").mkdir()
        (tmp_path / "out" / "report.csv").write_bytes(b"a,b\n")
        template = "{{ file_stem }}-{{ tag }}.{{ file_ext }}"
        runner = ScriptedRunner(outputs={template: CommandOutcome(0, "report-v2.3.0-rc1.csv\n")})
        host = FakeHost()
        settings = ReleaseSettings(
            enabled=True, token="t", files="out/*.csv", filename=template
        )
        publisher, _ = _publisher(tmp_path, settings, host, MockConsole(), runner)

        outcome = publisher.publish(CONTEXT)

        assert outcome is not None
        assert host.uploaded == [("report-v2.3.0-rc1.csv", b"a,b\n")]
        render_args = runner.calls[-1]
        assert "file_name=report.csv" in render_args
        assert "file_stem=report" in render_args
        assert "file_ext=csv" in render_args

    def test_filename_render_failure_keeps_original(self, tmp_path: Path) -> None:
        (tmp_path / "report.csv").write_bytes(b"x")
        console = MockConsole()
        host = FakeHost()
        settings = ReleaseSettings(enabled=True, token="t", files="*.csv", filename="{{ bad")
        publisher, _ = _publisher(tmp_path, settings, host, console)

        publisher.publish(CONTEXT)

        assert host.uploaded == [("report.csv", b"x")]
        assert console.has_warning()

    def test_no_assets_matched(self, tmp_path: Path) -> None:
        console = MockConsole()
        host = FakeHost()
        settings = ReleaseSettings(enabled=True, token="t", files="dist/*.zip")
        publisher, _ = _publisher(tmp_path, settings, host, console)

        outcome = publisher.publish(CONTEXT)

        assert outcome is not None
        assert len(host.created) == 1
        assert host.uploaded == []
        assert console.find("No files found matching pattern: dist/*.zip")

    def test_create_failure_stops_release(self, tmp_path: Path) -> None:
        (tmp_path / "a.txt").write_text("a")
        console = MockConsole()
        host = FakeHost(create_error=ReleaseError(kind="create_failed", message="tag exists"))
        settings = ReleaseSettings(enabled=True, token="t", files="*.txt")
        publisher, _ = _publisher(tmp_path, settings, host, console)

        assert publisher.publish(CONTEXT) is None
        assert host.uploaded == []
        assert console.find("Failed to create release: tag exists")

    def test_upload_failure_continues(self, tmp_path: Path) -> None:
        for name in ("a.txt", "b.txt", "c.txt"):
            (tmp_path / name).write_text(name)
        host = FakeHost(failing_assets={"b.txt"})
        settings = ReleaseSettings(enabled=True, token="t", files="*.txt")
        publisher, _ = _publisher(tmp_path, settings, host, MockConsole())

        outcome = publisher.publish(CONTEXT)

        assert outcome is not None
        assert outcome.uploaded == ("a.txt", "c.txt")
        assert outcome.failed == ("b.txt",)
