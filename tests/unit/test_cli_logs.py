"""
CLI tests for the logs command

kubectl is the scripted fake from conftest; its log file shows exactly
which calls were made.
"""

from riff_cli.cli import app

POD_QUERY = "get pod -l function=square -o jsonpath={.items[0].metadata.name}"


class TestPodLookup:
    """Tests for locating the function pod"""

    def test_inactive_function(self, runner, fake_kubectl):
        """Test no log fetch happens when no pod matches"""
        result = runner.invoke(app, ["logs", "--name", "square"])

        assert result.exit_code == 1
        assert "Function square may not be currently active" in result.output
        assert fake_kubectl.calls == [POD_QUERY]

    def test_name_is_required(self, runner, fake_kubectl):
        result = runner.invoke(app, ["logs"])

        assert result.exit_code == 2
        assert "--name" in result.output
        assert fake_kubectl.calls == []

    def test_missing_kubectl(self, runner, fake_kubectl, tmp_path):
        config_file = tmp_path / "riff.yaml"
        config_file.write_text("kubectl: no-such-kubectl\n")
        result = runner.invoke(app, ["--config", str(config_file), "logs", "-n", "square"])

        assert result.exit_code == 1
        assert "not found in PATH" in result.output


class TestFetch:
    """Tests for non-tailing log display"""

    def test_logs_of_container(self, runner, fake_kubectl):
        """Test exactly two calls: pod lookup, then logs with -c"""
        fake_kubectl.set_pod("square-7d9f")
        result = runner.invoke(app, ["logs", "--name", "square", "--container", "main"])

        assert result.exit_code == 0, result.output
        assert fake_kubectl.calls == [POD_QUERY, "logs square-7d9f -c main"]
        assert "Displaying logs for container main of function square" in result.output
        assert result.output.rstrip("\n").endswith("first log line\nsecond log line")

    def test_container_defaults_to_sidecar(self, runner, fake_kubectl):
        fake_kubectl.set_pod("square-7d9f")
        result = runner.invoke(app, ["logs", "-n", "square"])

        assert result.exit_code == 0, result.output
        assert fake_kubectl.calls[1] == "logs square-7d9f -c sidecar"

    def test_fetch_failure(self, runner, fake_kubectl):
        fake_kubectl.set_pod("square-7d9f")
        fake_kubectl.set("LOGS_ERROR", "container main is not valid")
        result = runner.invoke(app, ["logs", "-n", "square", "-c", "main"])

        assert result.exit_code == 1
        assert "Error: container main is not valid" in result.output


class TestNamespace:
    """Tests for namespace resolution"""

    def test_namespace_flag(self, runner, fake_kubectl):
        fake_kubectl.set_pod("square-7d9f")
        result = runner.invoke(app, ["logs", "-n", "square", "--namespace", "prod"])

        assert result.exit_code == 0, result.output
        assert fake_kubectl.calls == [
            "get --namespace prod pod -l function=square -o jsonpath={.items[0].metadata.name}",
            "logs --namespace prod square-7d9f -c sidecar",
        ]
        assert "in namespace prod" in result.output

    def test_namespace_from_environment(self, runner, fake_kubectl, monkeypatch):
        fake_kubectl.set_pod("square-7d9f")
        monkeypatch.setenv("RIFF_NAMESPACE", "staging")
        result = runner.invoke(app, ["logs", "-n", "square"])

        assert result.exit_code == 0, result.output
        assert fake_kubectl.calls[1] == "logs --namespace staging square-7d9f -c sidecar"

    def test_namespace_flag_beats_config_file(self, runner, fake_kubectl, tmp_path):
        fake_kubectl.set_pod("square-7d9f")
        config_file = tmp_path / "riff.yaml"
        config_file.write_text("namespace: from-file\n")
        result = runner.invoke(app, ["--config", str(config_file), "logs", "-n", "square", "--namespace", "prod"])

        assert result.exit_code == 0, result.output
        assert fake_kubectl.calls[1] == "logs --namespace prod square-7d9f -c sidecar"


class TestTail:
    """Tests for following logs"""

    def test_streamed_lines_appear_once_in_order(self, runner, fake_kubectl):
        fake_kubectl.set_pod("square-7d9f")
        fake_kubectl.set("LINES", 20)
        result = runner.invoke(app, ["logs", "-n", "square", "--tail"])

        assert result.exit_code == 0, result.output
        assert fake_kubectl.calls == [POD_QUERY, "logs square-7d9f -c sidecar -f"]
        streamed = [line for line in result.output.splitlines() if line.startswith("streamed line")]
        assert streamed == [f"streamed line {i}" for i in range(1, 21)]

    def test_follow_failure_exits_non_zero(self, runner, fake_kubectl):
        fake_kubectl.set_pod("square-7d9f")
        fake_kubectl.set("LINES", 1)
        fake_kubectl.set("FOLLOW_STATUS", 1)
        result = runner.invoke(app, ["logs", "-n", "square", "-t"])

        assert result.exit_code == 1
        assert "streamed line 1" in result.output
        assert "Error: kubectl exited with status 1" in result.output

    def test_long_line_is_printed(self, runner, fake_kubectl):
        fake_kubectl.set_pod("square-7d9f")
        script = fake_kubectl.bin_dir / "kubectl"
        script.write_text(
            "#!/bin/sh\n"
            "case \"$1\" in\n"
            "  get) printf '%s' \"$FAKE_KUBECTL_POD\" ;;\n"
            "  logs) head -c 70000 /dev/zero | tr '\\0' x; echo; echo done ;;\n"
            "esac\n"
        )
        result = runner.invoke(app, ["logs", "-n", "square", "-t"])

        assert result.exit_code == 0, result.output
        assert result.output.splitlines()[-2:] == ["x" * 70000, "done"]
