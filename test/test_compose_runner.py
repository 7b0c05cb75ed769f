import subprocess
import sys
import unittest
from pathlib import Path
from typing import Any

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from infrastructure.deploy import ComposeError, ComposeRunner, DeploymentSettings
from infrastructure.deploy.runner import parse_ps_output


class _FakeRun:
    def __init__(self, *, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.calls: list[tuple[list[str], dict[str, Any]]] = []

    def __call__(self, cmd, **kwargs) -> subprocess.CompletedProcess:
        self.calls.append((list(cmd), kwargs))
        return subprocess.CompletedProcess(cmd, self.returncode, stdout=self.stdout, stderr=self.stderr)


def _runner(fake: _FakeRun) -> ComposeRunner:
    cfg = DeploymentSettings(project_name="mem0", compose_file=Path("/srv/mem0/docker-compose.yml"))
    return ComposeRunner(cfg, env={"NEO4J_PASSWORD": "mem0graph"}, run=fake)


_PREFIX = ["docker", "compose", "-p", "mem0", "-f", "/srv/mem0/docker-compose.yml"]


class TestComposeRunner(unittest.TestCase):
    def test_up_with_pull_and_wait(self) -> None:
        fake = _FakeRun()
        _runner(fake).up(pull=True, wait=True)
        cmd, kwargs = fake.calls[0]
        self.assertEqual(cmd, _PREFIX + ["up", "-d", "--pull", "always", "--wait"])
        self.assertEqual(kwargs["env"], {"NEO4J_PASSWORD": "mem0graph"})
        self.assertFalse(kwargs["check"])

    def test_down_restart_pull(self) -> None:
        fake = _FakeRun()
        runner = _runner(fake)
        runner.down(volumes=True)
        runner.restart("mem0")
        runner.restart()
        runner.pull()
        self.assertEqual(
            [c[0][len(_PREFIX):] for c in fake.calls],
            [["down", "--volumes"], ["restart", "mem0"], ["restart"], ["pull"]],
        )

    def test_logs_arguments(self) -> None:
        fake = _FakeRun()
        _runner(fake).logs("neo4j", tail=50, follow=True)
        self.assertEqual(fake.calls[0][0][len(_PREFIX):], ["logs", "--follow", "--tail", "50", "neo4j"])

    def test_ps_parses_json(self) -> None:
        fake = _FakeRun(
            stdout='{"Service":"mem0","Name":"mem0-mem0-1","State":"running","Health":""}\n'
            '{"Service":"neo4j","Name":"mem0-neo4j-1","State":"running","Health":"healthy"}\n'
        )
        states = _runner(fake).ps()
        self.assertEqual([s.service for s in states], ["mem0", "neo4j"])
        self.assertTrue(all(s.running for s in states))
        self.assertEqual(states[1].health, "healthy")
        self.assertTrue(fake.calls[0][1]["capture_output"])

    def test_failure_raises_compose_error(self) -> None:
        fake = _FakeRun(returncode=1, stderr="network shared-db declared as external, but could not be found")
        with self.assertRaises(ComposeError) as ctx:
            _runner(fake).up()
        self.assertEqual(ctx.exception.returncode, 1)
        self.assertIn("shared-db", str(ctx.exception))

    def test_missing_docker_binary(self) -> None:
        def _missing(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        cfg = DeploymentSettings()
        runner = ComposeRunner(cfg, env={}, run=_missing)
        with self.assertRaises(ComposeError) as ctx:
            runner.ps()
        self.assertEqual(ctx.exception.returncode, 127)


class TestParsePsOutput(unittest.TestCase):
    def test_array_form_and_empty(self) -> None:
        states = parse_ps_output('[{"Service":"neo4j","Name":"n","State":"exited"}]')
        self.assertEqual(len(states), 1)
        self.assertFalse(states[0].running)
        self.assertEqual(parse_ps_output(""), [])


if __name__ == "__main__":
    unittest.main()
