# src/engine/staging.py
"""
StagingArea: per-job input/output directories bound into a scanner container.
"""
import logging
import os
import shutil
from typing import BinaryIO


def purge_directory(path) -> None:
    """
    Remove everything inside `path`, keeping the directory itself.
    A missing directory is a no-op.
    """
    if not os.path.isdir(path):
        return
    for entry in os.listdir(path):
        entry_path = os.path.join(path, entry)
        if os.path.isdir(entry_path) and not os.path.islink(entry_path):
            shutil.rmtree(entry_path)
        else:
            os.remove(entry_path)


class StagingArea:
    """
    Each job gets `<tool input_dir>/<job_id>` and `<tool output_dir>/<job_id>`, so
    concurrent jobs against the same tool never see each other's files.
    """

    def __init__(self, tool, job_id: str):
        self.tool_id = tool.id
        self.job_id = job_id
        self.input_dir = os.path.abspath(os.path.join(tool.input_dir, job_id))
        self.output_dir = os.path.abspath(os.path.join(tool.output_dir, job_id))

    def prepare(self):
        os.makedirs(self.input_dir, exist_ok=True)
        os.makedirs(self.output_dir, exist_ok=True)
        purge_directory(self.output_dir)
        return self

    def stage_upload(self, filename: str, stream: BinaryIO) -> str:
        target = os.path.join(self.input_dir, filename)
        with open(target, "wb") as f:
            shutil.copyfileobj(stream, f)
        logging.info(f"[job_id={self.job_id}] Staged {filename} for {self.tool_id} at {target}")
        return target

    def purge_input(self) -> bool:
        try:
            purge_directory(self.input_dir)
            return True
        except OSError as e:
            logging.error(f"[job_id={self.job_id}] Error cleaning up input directory {self.input_dir}: {e}")
            return False

    def release(self) -> bool:
        released = True
        for path in (self.input_dir, self.output_dir):
            try:
                shutil.rmtree(path)
            except FileNotFoundError:
                pass
            except OSError as e:
                logging.error(f"[job_id={self.job_id}] Error removing staging directory {path}: {e}")
                released = False
        return released
