import os
import sys
import tempfile
from pathlib import Path

import pytest

_SRC = Path(__file__).resolve().parents[1]
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

# Configure before the application modules read their settings.
_WORKDIR = tempfile.mkdtemp(prefix="apkscan_tests_")
os.environ.setdefault("APKSCAN_TOOLS_DIR", os.path.join(_WORKDIR, "tools"))
os.environ.setdefault("APKSCAN_DATABASE_URL", f"sqlite:///{os.path.join(_WORKDIR, 'jobs.db')}")

from engine.db import create_session_factory  # noqa: E402
from engine.job_manager import JobManager  # noqa: E402
from engine.registry import ToolDescriptor, ToolRegistry  # noqa: E402
from tools.base import ContainerRun, ContainerRunner  # noqa: E402


class FakeRunner(ContainerRunner):
    """
    Stands in for Docker: calls `behaviour(input_dir, output_dir, command)` with the
    host paths that would be mounted, and returns its ContainerRun.
    """

    def __init__(self, behaviour):
        self.behaviour = behaviour
        self.calls = []

    def run(self, image, volumes, command):
        mounts = {container_path: host_path for host_path, container_path in volumes.items()}
        self.calls.append({"image": image, "volumes": dict(volumes), "command": list(command)})
        return self.behaviour(mounts["/input"], mounts["/output"], list(command))


def write_result(directory, *parts, content="finding\n"):
    path = os.path.join(directory, *parts)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    return path


@pytest.fixture
def tools_root(tmp_path):
    return tmp_path / "tools"


@pytest.fixture
def registry(tools_root):
    return ToolRegistry([
        ToolDescriptor(
            id="reconizex", name="ReconizeX", image="devrvk/reconizerx-docker",
            input_dir=tools_root / "reconizex" / "input", output_dir=tools_root / "reconizex" / "output",
            result_file="non-info.txt", fallback_result_file="nuk.txt",
            extra_args="filename", result_layout="nested", dialect="tagged",
        ),
        ToolDescriptor(
            id="secureapk", name="SecureApk", image="devrvk/secureapk",
            input_dir=tools_root / "secureapk" / "input", output_dir=tools_root / "secureapk" / "output",
            result_file="vulnerabilities.txt", result_layout="flat", dialect="narrative",
        ),
    ])


@pytest.fixture
def job_manager(tmp_path):
    return JobManager(create_session_factory(f"sqlite:///{tmp_path / 'ledger.db'}"))


@pytest.fixture
def completed_run():
    return ContainerRun(0, b"done")
