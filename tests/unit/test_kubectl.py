"""
Unit tests for the kubectl wrapper

Runs the wrapper against the fake kubectl script from conftest.
"""

import asyncio

import pytest

from riff_cli.kubectl import Kubectl, KubectlError


class TestExecForString:
    """Tests for running kubectl to completion"""

    def test_returns_stdout(self, fake_kubectl):
        fake_kubectl.set_pod("square-7d9f")
        output = asyncio.run(Kubectl().exec_for_string(["get", "pod"]))
        assert output == "square-7d9f"
        assert fake_kubectl.calls == ["get pod"]

    def test_failure_raises_with_stderr(self, fake_kubectl):
        with pytest.raises(KubectlError, match="array index out of bounds"):
            asyncio.run(Kubectl().exec_for_string(["get", "pod"]))

    def test_combined_output(self, fake_kubectl):
        fake_kubectl.set("LOGS_ERROR", "container not found")
        with pytest.raises(KubectlError, match="container not found"):
            asyncio.run(Kubectl().exec_for_string(["logs", "pod"], combine_output=True))

    def test_missing_binary(self, fake_kubectl):
        with pytest.raises(KubectlError, match="not found in PATH"):
            asyncio.run(Kubectl(binary="no-such-kubectl").exec_for_string(["version"]))


class TestFollow:
    """Tests for streaming kubectl output"""

    def test_lines_are_delivered_in_order(self, fake_kubectl):
        fake_kubectl.set("LINES", 50)
        lines = []

        asyncio.run(Kubectl().follow(["logs", "pod", "-f"], lines.append))

        assert lines == [f"streamed line {i}" for i in range(1, 51)]

    def test_non_zero_exit_raises_after_output(self, fake_kubectl):
        """Test lines read before a failure are kept"""
        fake_kubectl.set("LINES", 2)
        fake_kubectl.set("FOLLOW_STATUS", 3)
        lines = []

        with pytest.raises(KubectlError, match="status 3"):
            asyncio.run(Kubectl().follow(["logs", "pod", "-f"], lines.append))

        assert lines == ["streamed line 1", "streamed line 2"]

    def test_cancellation_terminates_process(self, fake_kubectl):
        """Test cancelling the follow reaps the kubectl process"""
        script = fake_kubectl.bin_dir / "kubectl"
        script.write_text("#!/bin/sh\necho started\nexec sleep 30\n")
        kubectl = Kubectl()
        lines = []

        async def follow_then_cancel():
            task = asyncio.create_task(kubectl.follow(["logs", "pod", "-f"], lines.append))
            while not lines:
                await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(asyncio.wait_for(follow_then_cancel(), timeout=10))

        assert lines == ["started"]

    def test_long_lines_are_delivered_whole(self, fake_kubectl):
        """Test a line larger than the stream buffer limit"""
        script = fake_kubectl.bin_dir / "kubectl"
        script.write_text(
            "#!/bin/sh\n"
            "echo before\n"
            "head -c 70000 /dev/zero | tr '\\0' x\n"
            "echo\n"
            "echo after\n"
        )
        lines = []

        asyncio.run(Kubectl().follow(["logs", "pod", "-f"], lines.append))

        assert lines == ["before", "x" * 70000, "after"]

    def test_last_line_without_newline(self, fake_kubectl):
        script = fake_kubectl.bin_dir / "kubectl"
        script.write_text("#!/bin/sh\nprintf 'one\\r\\ntwo'\n")
        lines = []

        asyncio.run(Kubectl().follow(["logs", "pod", "-f"], lines.append))

        assert lines == ["one", "two"]
