"""Runs the external fragment compiler (sphinx-build JSON builder)."""

from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Sequence

from .errors import CompilationFailure
from .logging import get_logger

FRAGMENT_SUFFIX = ".fjson"


class SphinxCompiler:
    """Turns a staged source tree into one JSON fragment per document."""

    def __init__(
        self,
        runner: Callable[..., str] | None = None,
        *,
        executable: str = "sphinx-build",
        timeout: float | None = 600.0,
    ) -> None:
        self._runner = runner or self._default_runner
        self.executable = executable
        self.timeout = timeout
        self.logger = get_logger("compiler")

    def command(self, config_dir: Path, source_dir: Path, output_dir: Path) -> List[str]:
        return [
            self.executable,
            "-b",
            "json",
            "-c",
            str(config_dir),
            str(source_dir),
            str(output_dir),
        ]

    def compile(
        self,
        config_dir: Path,
        source_dir: Path,
        output_dir: Path,
        *,
        repo_name: str | None = None,
    ) -> List[Path]:
        """Build fragments into a fresh `output_dir` and return their paths.

        A non-zero exit, a timeout, a missing executable or a build that emits
        no fragments all raise CompilationFailure.
        """
        if output_dir.exists():
            shutil.rmtree(output_dir)
        output_dir.mkdir(parents=True)

        args = self.command(config_dir, source_dir, output_dir)
        self.logger.debug("Running %s", " ".join(args))
        try:
            self._run(args, cwd=config_dir if config_dir.is_dir() else None)
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or exc.stdout or "").strip().splitlines()
            reason = detail[-1] if detail else "no output"
            raise CompilationFailure(
                repo_name,
                f"{self.executable} exited with status {exc.returncode}: {reason}",
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise CompilationFailure(
                repo_name, f"{self.executable} timed out after {exc.timeout} seconds"
            ) from exc
        except OSError as exc:
            raise CompilationFailure(
                repo_name, f"Unable to run {self.executable}: {exc}"
            ) from exc

        fragments = find_fragments(output_dir)
        if not fragments:
            raise CompilationFailure(repo_name, f"No fragments were produced in {output_dir}")
        return fragments

    # ------------------------------------------------------------------
    # Helpers

    def _run(self, args: Iterable[str], *, cwd: Path | None) -> str:
        return self._runner(args, cwd=cwd, timeout=self.timeout)

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd) if cwd is not None else None,
            check=True,
            text=True,
            capture_output=True,
            timeout=timeout,
        )
        return completed.stdout


def find_fragments(output_dir: Path) -> List[Path]:
    """Return fragment files below `output_dir`, sorted for stable processing."""
    return sorted(
        path
        for path in output_dir.rglob("*")
        if path.is_file() and path.suffix.lower() == FRAGMENT_SUFFIX
    )


def load_fragment(path: Path, *, repo_name: str | None = None) -> Dict[str, Any]:
    """Parse one fragment file; malformed JSON is a compilation failure."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise CompilationFailure(repo_name, f"Unreadable fragment {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise CompilationFailure(repo_name, f"Fragment {path} is not a JSON object")
    return data


def load_fragments(
    output_dir: Path, paths: Sequence[Path], *, repo_name: str | None = None
) -> List[tuple[Path, Dict[str, Any]]]:
    """Return `(path relative to output_dir, fragment)` pairs."""
    return [
        (path.relative_to(output_dir), load_fragment(path, repo_name=repo_name))
        for path in paths
    ]


__all__ = [
    "FRAGMENT_SUFFIX",
    "SphinxCompiler",
    "find_fragments",
    "load_fragment",
    "load_fragments",
]
