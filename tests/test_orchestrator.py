from conftest import FakeConsole, FakeRunner
from console_mode.display.models import Capabilities
from console_mode.launch.builder import LaunchCommandBuilder
from console_mode.launch.orchestrator import (
    ExitedNonZero,
    FailedToStart,
    LaunchOrchestrator,
    State,
    Succeeded,
)
from console_mode.launch.overrides import Overrides
from console_mode.launch.resolver import CapabilityResolver

GAMING = Capabilities(
    max_refresh_hz=144,
    supports_vrr=True,
    supports_hdr=True,
    color_depth_bits=10,
    native_resolution=(2560, 1440),
)


def _orchestrator(runner: FakeRunner, console: FakeConsole) -> LaunchOrchestrator:
    resolver = CapabilityResolver(GAMING, output_name="DP-1")
    builder = LaunchCommandBuilder({}, getuid=lambda: 1000)
    return LaunchOrchestrator(resolver.resolve, builder, runner, console)


def test_clean_exit_succeeds_without_prompt():
    runner, console = FakeRunner([0]), FakeConsole()
    orchestrator = _orchestrator(runner, console)
    assert orchestrator.run(Overrides()) == 0
    assert orchestrator.history == [State.IDLE, State.LAUNCHING, State.RUNNING, State.SUCCEEDED]
    assert orchestrator.outcomes == [Succeeded(safe_mode=False)]
    assert console.prompts == []
    assert len(runner.spawned) == 1


def test_failure_then_accepted_retry_uses_safe_mode():
    runner, console = FakeRunner([1, 0]), FakeConsole(answers=[""])
    orchestrator = _orchestrator(runner, console)
    overrides = Overrides(force_vrr=True, force_hdr=True, resolution=(3840, 2160), refresh_hz=240)

    assert orchestrator.run(overrides) == 0
    first, second = orchestrator.configs
    assert first.vrr and first.hdr and first.resolution == (3840, 2160)
    assert second.safe_mode is True
    assert second.vrr is False
    assert second.hdr is False
    assert second.resolution == (2560, 1440)
    assert second.refresh_hz == 60
    assert orchestrator.history == [
        State.IDLE, State.LAUNCHING, State.RUNNING, State.FAILED,
        State.PROMPT_RETRY, State.LAUNCHING, State.RUNNING, State.SUCCEEDED,
    ]
    safe_argv = runner.spawned[1][0]
    assert "--adaptive-sync" not in safe_argv
    assert "--hdr-enabled" not in safe_argv


def test_declined_retry_aborts():
    runner, console = FakeRunner([3]), FakeConsole(answers=["n"])
    orchestrator = _orchestrator(runner, console)
    assert orchestrator.run(Overrides()) == 1
    assert orchestrator.state is State.ABORTED
    assert len(runner.spawned) == 1


def test_closed_stdin_declines_retry():
    orchestrator = _orchestrator(FakeRunner([3]), FakeConsole())
    assert orchestrator.run(Overrides()) == 1
    assert orchestrator.state is State.ABORTED


def test_failed_safe_retry_is_terminal():
    runner, console = FakeRunner([1, 2]), FakeConsole(answers=["y", "y"])
    orchestrator = _orchestrator(runner, console)
    assert orchestrator.run(Overrides()) == 2
    assert orchestrator.state is State.FAILED
    assert len(console.prompts) == 1
    assert len(runner.spawned) == 2
    assert orchestrator.outcomes == [ExitedNonZero(safe_mode=False, code=1), ExitedNonZero(safe_mode=True, code=2)]


def test_user_requested_safe_mode_never_prompts():
    runner, console = FakeRunner([1]), FakeConsole(answers=["y"])
    orchestrator = _orchestrator(runner, console)
    assert orchestrator.run(Overrides(safe_mode=True)) == 1
    assert console.prompts == []
    assert len(runner.spawned) == 1


def test_spawn_failure_is_recoverable_once():
    runner = FakeRunner([FileNotFoundError("gamescope"), FileNotFoundError("gamescope")])
    console = FakeConsole(answers=[""])
    orchestrator = _orchestrator(runner, console)
    assert orchestrator.run(Overrides()) == 127
    assert [type(o) for o in orchestrator.outcomes] == [FailedToStart, FailedToStart]
    assert State.RUNNING not in orchestrator.history
    assert len(console.prompts) == 1


def test_signal_exit_maps_to_shell_status():
    assert ExitedNonZero(safe_mode=True, code=-9).exit_status == 137
    assert ExitedNonZero(safe_mode=True, code=300).exit_status == 1


def test_safe_retry_drops_passthrough_arguments():
    runner, console = FakeRunner([1, 0]), FakeConsole(answers=[""])
    orchestrator = _orchestrator(runner, console)
    overrides = Overrides(no_vrr=True, no_hdr=True, extra_args=("--hdr-enabled", "--adaptive-sync"))

    assert orchestrator.run(overrides) == 0
    first_argv, safe_argv = runner.spawned[0][0], runner.spawned[1][0]
    assert first_argv[-5:-3] == ("--hdr-enabled", "--adaptive-sync")
    assert "--hdr-enabled" not in safe_argv
    assert "--adaptive-sync" not in safe_argv
