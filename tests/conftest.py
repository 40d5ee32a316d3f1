from __future__ import annotations

import sys
import textwrap
from dataclasses import dataclass, replace
from pathlib import Path

import pytest

from cctest.plan.models import CrateArtifact, RunPlan

# Stand-in for rustc: refuses to run without the dependency flags, then
# decides the outcome from markers in the fixture source.
FAKE_COMPILER = textwrap.dedent(
    """
    import pathlib
    import sys
    import time

    args = sys.argv[1:]
    if "-L" not in args or args.count("--extern") != 2:
        sys.stderr.write("error: dependency flags missing\\n")
        sys.exit(2)
    source = pathlib.Path(args[-1])
    text = source.read_text(encoding="utf-8")
    pathlib.Path("fixture.out").write_text("artifact", encoding="utf-8")
    if "HANG" in text:
        time.sleep(30)
    if "CRASH" in text:
        sys.stderr.write("error: internal compiler error: unexpected panic\\n")
        sys.exit(101)
    errors = [line.split("ERROR:", 1)[1].strip() for line in text.splitlines() if "ERROR:" in line]
    if errors:
        for message in errors:
            sys.stderr.write("error: " + message + "\\n")
        sys.exit(1)
    """
)


@dataclass
class Workspace:
    root: Path
    fixtures: Path
    deps: Path
    compiler_script: Path

    @property
    def compiler(self) -> tuple:
        return (sys.executable, str(self.compiler_script))

    def write(self, name: str, text: str = "fn main() {}\n") -> Path:
        path = self.fixtures / name
        path.write_text(text, encoding="utf-8")
        return path

    def plan(self, **overrides) -> RunPlan:
        plan = RunPlan(
            fixture_dir=self.fixtures,
            search_dir=self.deps,
            library=CrateArtifact(name="luther", artifact=str(self.deps / "libluther-0a1b2c.rlib")),
            derive=CrateArtifact(name="luther_derive", artifact=str(self.deps / "libluther_derive-*.so")),
            base_dir=self.root,
            compiler=self.compiler,
            timeout_s=10.0,
            jobs=2,
        )
        return replace(plan, **overrides)

    def plan_yaml(self, extra: str = "") -> Path:
        path = self.root / "cctest.yaml"
        path.write_text(
            textwrap.dedent(
                f"""
                fixtures: fixtures
                search_dir: deps
                compiler: ["{Path(sys.executable).as_posix()}", "{self.compiler_script.as_posix()}"]
                library:
                  name: luther
                  artifact: deps/libluther-*.rlib
                derive:
                  name: luther_derive
                  artifact: deps/libluther_derive-*.so
                timeout: 10
                jobs: 2
                """
            )
            + textwrap.dedent(extra),
            encoding="utf-8",
        )
        return path


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    fixtures = tmp_path / "fixtures"
    deps = tmp_path / "deps"
    fixtures.mkdir()
    deps.mkdir()
    (deps / "libluther-0a1b2c.rlib").write_bytes(b"rlib")
    (deps / "libluther_derive-3d4e5f.so").write_bytes(b"so")
    script = tmp_path / "fake_rustc.py"
    script.write_text(FAKE_COMPILER, encoding="utf-8")
    return Workspace(root=tmp_path, fixtures=fixtures, deps=deps, compiler_script=script)

