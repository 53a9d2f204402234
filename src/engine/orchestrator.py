# src/engine/orchestrator.py
"""
JobOrchestrator: stage an uploaded APK, run the tool's container and read back its result.
"""
import logging
import os
import uuid
from datetime import datetime, timezone
from typing import BinaryIO, Optional

from engine.errors import AnalysisError, ExecutionError, ResultMissingError, ValidationError
from engine.registry import ToolDescriptor, ToolRegistry
from engine.staging import StagingArea
from tools.base import ContainerRun, ContainerRunner

ANDROID_PACKAGE_MIME = "application/vnd.android.package-archive"
NO_APK_MESSAGE = "No APK file provided or invalid file type"


class UploadedApk:
    def __init__(self, filename: str, stream: BinaryIO, size: Optional[int] = None, content_type: Optional[str] = None):
        self.filename = filename
        self.stream = stream
        self.size = size
        self.content_type = content_type

    def declared_size(self) -> int:
        if self.size is not None:
            return self.size
        position = self.stream.tell()
        self.stream.seek(0, os.SEEK_END)
        size = self.stream.tell()
        self.stream.seek(position)
        return size


def accepts_upload(filename: Optional[str], content_type: Optional[str]) -> bool:
    """Upload filter: keep files that look like an Android package by MIME type or name."""
    if not filename:
        return False
    return content_type == ANDROID_PACKAGE_MIME or filename.lower().endswith(".apk")


def validate_upload(upload: Optional[UploadedApk], max_bytes: int) -> str:
    """Check an upload before staging and return the filename it will be staged under."""
    if upload is None:
        raise ValidationError(NO_APK_MESSAGE)
    filename = os.path.basename((upload.filename or "").replace("\\", "/"))
    if not filename.lower().endswith(".apk"):
        raise ValidationError(f"Only .apk files are accepted, got: {filename or '<empty>'}")
    size = upload.declared_size()
    if size > max_bytes:
        raise ValidationError(f"APK is {size} bytes, limit is {max_bytes} bytes")
    return filename


class AnalysisOutcome:
    def __init__(self, job_id: str, tool_id: str, uploaded_filename: str, completed: bool, raw_text: str,
                 started_at: datetime):
        self.job_id = job_id
        self.tool_id = tool_id
        self.uploaded_filename = uploaded_filename
        self.completed = completed
        self.raw_text = raw_text
        self.started_at = started_at


class JobOrchestrator:
    def __init__(self, registry: ToolRegistry, runner: ContainerRunner, job_manager=None,
                 max_upload_bytes: int = 100 * 1024 * 1024, arch: Optional[str] = None):
        self.registry = registry
        self.runner = runner
        self.job_manager = job_manager
        self.max_upload_bytes = max_upload_bytes
        self.arch = arch

    def run(self, tool_id: str, upload: Optional[UploadedApk]) -> AnalysisOutcome:
        tool = self.registry.get(tool_id)
        filename = validate_upload(upload, self.max_upload_bytes)
        started_at = datetime.now(timezone.utc)
        job_id = self.job_manager.start_job(tool.id, filename) if self.job_manager else uuid.uuid4().hex
        staging = StagingArea(tool, job_id)
        try:
            completed, raw_text = self._execute(tool, staging, filename, upload)
        except AnalysisError as e:
            self._fail(job_id, e.message)
            raise
        except Exception as e:
            self._fail(job_id, str(e))
            raise
        finally:
            staging.release()
        if self.job_manager:
            self.job_manager.finish_job(job_id, completed, len(raw_text))
        return AnalysisOutcome(job_id, tool.id, filename, completed, raw_text, started_at)

    def _execute(self, tool: ToolDescriptor, staging: StagingArea, filename: str, upload: UploadedApk):
        staging.prepare()
        staging.stage_upload(filename, upload.stream)

        volumes = {staging.input_dir: "/input", staging.output_dir: "/output"}
        run = self.runner.run(tool.image_for(self.arch), volumes, tool.command_args(filename))
        completed = self._classify(tool, run, staging.job_id)

        result_file = tool.result_file if completed else tool.fallback_result_file
        result_path = tool.resolve_result_path(staging.output_dir, filename, result_file)
        if not os.path.isfile(result_path):
            raise ResultMissingError(f"Result file not found for {tool.name}: {result_file}")
        with open(result_path, "r", encoding="utf-8", errors="replace") as f:
            raw_text = f.read()
        if not raw_text.strip():
            raise ResultMissingError(f"Result file from {tool.name} is empty: {result_file}")

        staging.purge_input()
        return completed, raw_text

    def _classify(self, tool: ToolDescriptor, run: ContainerRun, job_id: str) -> bool:
        """True for a complete run, False for a tolerated partial run; raises otherwise."""
        if run.success:
            return True
        if run.overflowed and tool.supports_partial and not run.timed_out and run.error is None:
            logging.warning(f"[job_id={job_id}] Buffer exceeded for {tool.name}, falling back to partial results")
            return False
        if run.timed_out:
            cause = "container timed out"
        elif run.overflowed:
            cause = "output exceeded capture buffer"
        elif run.error:
            cause = run.error
        else:
            cause = f"exit code {run.exit_code}"
        tail = run.output[-2000:].decode("utf-8", errors="replace") if run.output else ""
        logging.error(f"[job_id={job_id}] Error running {tool.name}: {cause}. Output tail: {tail}")
        raise ExecutionError(f"Failed to analyze APK with {tool.name}")

    def _fail(self, job_id: str, error: str):
        if self.job_manager:
            self.job_manager.fail_job(job_id, error)
        else:
            logging.error(f"[job_id={job_id}] Job failed: {error}")
