"""Generation of rust-project.json so rust-analyzer understands the exercises."""

from __future__ import annotations

import glob
import json
import os
import subprocess
from dataclasses import asdict, dataclass, field
from pathlib import Path

PROJECT_FILE = "./rust-project.json"
EXERCISES_DIR = "./exercises"


@dataclass
class Crate:
    """One exercise file presented to rust-analyzer as a crate."""

    root_module: str
    edition: str = "2021"
    deps: list[str] = field(default_factory=list)
    # Lets rust-analyzer work inside #[test] blocks.
    cfg: list[str] = field(default_factory=lambda: ["test"])


@dataclass
class RustAnalyzerProject:
    """Contents of rust-project.json and the steps that gather them."""

    sysroot_src: str = ""
    crates: list[Crate] = field(default_factory=list)

    def to_json(self) -> str:
        """Serialise the project in the compact rust-project.json form."""
        data = {
            "sysroot_src": self.sysroot_src,
            "crates": [asdict(crate) for crate in self.crates],
        }
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False)

    def write_to_disk(self, path: str | os.PathLike = PROJECT_FILE) -> None:
        """Write rust-project.json to disk."""
        Path(path).write_bytes(self.to_json().encode("utf-8"))

    def path_to_json(self, path: str | os.PathLike) -> None:
        """Add a crate for the path if it has an .rs extension."""
        if Path(path).suffix == ".rs":
            self.crates.append(Crate(root_module=os.fspath(path)))

    def exercises_to_json(self, root: str | os.PathLike = EXERCISES_DIR) -> None:
        """Add a crate for every .rs file below the exercises directory."""
        pattern = os.path.join(os.fspath(root), "**", "*")
        for entry in sorted(glob.glob(pattern, recursive=True, include_hidden=True)):
            self.path_to_json(entry)

    def get_sysroot_src(self) -> None:
        """Find the standard library sources, from RUST_SRC_PATH or rustc."""
        from_env = os.environ.get("RUST_SRC_PATH")
        if from_env is not None:
            self.sysroot_src = from_env
            return

        result = subprocess.run(["rustc", "--print", "sysroot"], capture_output=True)
        text = result.stdout.decode("utf-8", errors="replace")
        parts = text.split()
        toolchain = parts[0] if parts else text

        print(f"Determined toolchain: {toolchain}\n")

        self.sysroot_src = str(Path(toolchain, "lib", "rustlib", "src", "rust", "library"))