from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence

from infrastructure.deploy.compose import compose_environment
from infrastructure.deploy.topology import DeploymentSettings

logger = logging.getLogger(__name__)

RunFn = Callable[..., subprocess.CompletedProcess]


class ComposeError(RuntimeError):
    def __init__(self, *, command: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.command = list(command)
        self.returncode = int(returncode)
        self.stderr = (stderr or "").strip()
        detail = f": {self.stderr[:300]}" if self.stderr else ""
        super().__init__(f"{' '.join(self.command)} exited with {self.returncode}{detail}")


@dataclass(frozen=True)
class ServiceState:
    service: str
    name: str
    state: str
    health: str = ""

    @property
    def running(self) -> bool:
        return self.state.lower() == "running"


def parse_ps_output(output: str) -> list[ServiceState]:
    """Parse ``docker compose ps --format json``.

    Compose v2 prints either one JSON array or one JSON object per line
    depending on the release.
    """
    text = (output or "").strip()
    if not text:
        return []
    try:
        decoded: Any = json.loads(text)
        rows = decoded if isinstance(decoded, list) else [decoded]
    except ValueError:
        rows = [json.loads(line) for line in text.splitlines() if line.strip()]

    states: list[ServiceState] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        states.append(
            ServiceState(
                service=str(row.get("Service") or ""),
                name=str(row.get("Name") or ""),
                state=str(row.get("State") or ""),
                health=str(row.get("Health") or ""),
            )
        )
    return states


class ComposeRunner:
    """Thin wrapper over ``docker compose`` for the stack's lifecycle commands."""

    def __init__(
        self,
        cfg: DeploymentSettings,
        *,
        compose_file: Optional[Path] = None,
        docker_bin: str = "docker",
        env: Optional[Mapping[str, str]] = None,
        run: RunFn = subprocess.run,
    ) -> None:
        self._cfg = cfg
        self._compose_file = Path(compose_file or cfg.compose_file)
        self._docker_bin = docker_bin
        self._env = dict(env) if env is not None else compose_environment(cfg)
        self._run = run

    @property
    def compose_file(self) -> Path:
        return self._compose_file

    def command(self, *args: str) -> list[str]:
        return [
            self._docker_bin,
            "compose",
            "-p",
            self._cfg.project_name,
            "-f",
            str(self._compose_file),
            *args,
        ]

    def _execute(self, *args: str, capture: bool = False) -> str:
        cmd = self.command(*args)
        logger.info("running: %s", " ".join(cmd))
        try:
            proc = self._run(
                cmd,
                env=self._env,
                capture_output=capture,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ComposeError(command=cmd, returncode=127, stderr=f"{self._docker_bin} not found") from exc
        if proc.returncode != 0:
            raise ComposeError(command=cmd, returncode=proc.returncode, stderr=proc.stderr or "")
        return proc.stdout or ""

    def up(self, *, pull: bool = False, wait: bool = False) -> None:
        args = ["up", "-d"]
        if pull:
            args += ["--pull", "always"]
        if wait:
            args.append("--wait")
        self._execute(*args)

    def down(self, *, volumes: bool = False) -> None:
        args = ["down"]
        if volumes:
            args.append("--volumes")
        self._execute(*args)

    def restart(self, service: Optional[str] = None) -> None:
        self._execute(*(["restart", service] if service else ["restart"]))

    def logs(self, service: Optional[str] = None, *, tail: Optional[int] = None, follow: bool = False) -> None:
        args = ["logs"]
        if follow:
            args.append("--follow")
        if tail is not None:
            args += ["--tail", str(int(tail))]
        if service:
            args.append(service)
        self._execute(*args)

    def pull(self) -> None:
        self._execute("pull")

    def ps(self) -> list[ServiceState]:
        return parse_ps_output(self._execute("ps", "--all", "--format", "json", capture=True))
