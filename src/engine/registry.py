# src/engine/registry.py
"""
ToolRegistry: static table of containerized scanners and their invocation contracts.
"""
import os
import platform
import re
from pathlib import Path
from typing import Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field


APK_EXTENSION = re.compile(r"\.apk", re.IGNORECASE)


def _strip_apk_extension(filename: str) -> str:
    return APK_EXTENSION.sub("", filename, count=1)


# Where a tool writes its result file, relative to the output directory
RESULT_LAYOUTS = {
    'flat': lambda output_dir, filename, result_file: os.path.join(output_dir, result_file),
    'nested': lambda output_dir, filename, result_file: os.path.join(
        output_dir, _strip_apk_extension(filename), result_file
    ),
}

# Extra container command arguments derived from the uploaded filename
EXTRA_ARGS = {
    'filename': lambda filename: [filename],
}


def host_architecture() -> str:
    machine = platform.machine().lower()
    return "arm64" if machine in ("arm64", "aarch64") else "amd64"


class ToolDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    image: str = Field(..., description="Image reference without the architecture tag")
    input_dir: Path
    output_dir: Path
    result_file: str
    fallback_result_file: Optional[str] = None
    extra_args: Optional[Literal['filename']] = None
    result_layout: Literal['flat', 'nested'] = 'flat'
    dialect: str

    @property
    def supports_partial(self) -> bool:
        return self.fallback_result_file is not None

    def image_for(self, arch: Optional[str] = None) -> str:
        return f"{self.image}:{arch or host_architecture()}"

    def command_args(self, filename: str) -> List[str]:
        if self.extra_args is None:
            return []
        return EXTRA_ARGS[self.extra_args](filename)

    def resolve_result_path(self, output_dir, filename: str, result_file: str) -> str:
        return RESULT_LAYOUTS[self.result_layout](str(output_dir), filename, result_file)


class ToolRegistry:
    def __init__(self, descriptors: List[ToolDescriptor]):
        self._tools: Dict[str, ToolDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.id in self._tools:
                raise ValueError(f"Duplicate tool id: {descriptor.id}")
            self._tools[descriptor.id] = descriptor

    def get(self, tool_id: str) -> ToolDescriptor:
        return self._tools[tool_id]

    def __contains__(self, tool_id: str) -> bool:
        return tool_id in self._tools

    def __iter__(self):
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def ids(self) -> List[str]:
        return list(self._tools)

    def ensure_directories(self):
        for tool in self:
            os.makedirs(tool.input_dir, exist_ok=True)
            os.makedirs(tool.output_dir, exist_ok=True)


def load_registry(registry_file, tools_dir) -> ToolRegistry:
    """
    Load tool descriptors from a YAML document of the form {tools: {<id>: {...}}}.
    """
    with open(registry_file, "r") as f:
        data = yaml.safe_load(f) or {}
    tools_dir = Path(tools_dir).resolve()
    descriptors = []
    for tool_id, entry in (data.get("tools") or {}).items():
        entry = dict(entry)
        entry.setdefault("input_dir", tools_dir / tool_id / "input")
        entry.setdefault("output_dir", tools_dir / tool_id / "output")
        descriptors.append(ToolDescriptor(id=tool_id, **entry))
    return ToolRegistry(descriptors)
