# src/engine/config.py
"""
Settings: runtime configuration read from environment variables.
"""
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_REGISTRY_FILE = Path(__file__).parent / "tools.yaml"


class Settings(BaseModel):
    port: int = Field(3000, description="Listen port for the HTTP server")
    tools_dir: Path = Field(Path("tools"), description="Root directory for per-tool staging")
    registry_file: Path = Field(DEFAULT_REGISTRY_FILE, description="YAML tool registry")
    database_url: str = Field("sqlite:///./apkscan_jobs.db", description="Job ledger database")
    max_upload_bytes: int = Field(100 * 1024 * 1024, description="Upload size ceiling")
    output_buffer_bytes: int = Field(10 * 1024 * 1024, description="Captured container output bound")
    container_timeout: Optional[float] = Field(1800.0, description="Seconds before a container is killed")

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ
        values = {}
        mapping = {
            "PORT": "port",
            "APKSCAN_TOOLS_DIR": "tools_dir",
            "APKSCAN_REGISTRY_FILE": "registry_file",
            "APKSCAN_DATABASE_URL": "database_url",
            "APKSCAN_MAX_UPLOAD_BYTES": "max_upload_bytes",
            "APKSCAN_OUTPUT_BUFFER_BYTES": "output_buffer_bytes",
            "APKSCAN_CONTAINER_TIMEOUT": "container_timeout",
        }
        for var, field in mapping.items():
            if env.get(var):
                values[field] = env[var]
        return cls(**values)


settings = Settings.from_env()
