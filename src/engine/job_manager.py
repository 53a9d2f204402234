# src/engine/job_manager.py
"""
JobManager: in-memory tracker of in-flight analysis jobs plus a ledger of finished ones.
"""

import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, Optional
from engine.models import AnalysisJob
import logging


class JobManager:
    def __init__(self, session_factory=None):
        if session_factory is None:
            from engine.db import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory
        self.jobs: Dict[str, dict] = {}
        self.lock = threading.Lock()

    def start_job(self, tool_id: str, uploaded_filename: str) -> str:
        job_id = uuid.uuid4().hex
        started_at = datetime.now(timezone.utc)
        db = self.session_factory()
        try:
            db.add(AnalysisJob(job_id=job_id, tool_id=tool_id, uploaded_filename=uploaded_filename,
                               status="running", created_at=started_at))
            db.commit()
        finally:
            db.close()
        with self.lock:
            self.jobs[job_id] = {"tool_id": tool_id, "uploaded_filename": uploaded_filename,
                                 "started_at": started_at}
        logging.info(f"[job_id={job_id}] Started {tool_id} job for {uploaded_filename}")
        return job_id

    def finish_job(self, job_id: str, completed: bool, result_size: int):
        status = "completed" if completed else "partial"
        self._close(job_id, status=status, completed=completed, result_size=result_size)
        logging.info(f"[job_id={job_id}] Job finished. status={status} result_size={result_size}")

    def fail_job(self, job_id: str, error: str):
        self._close(job_id, status="failed", error=error)
        logging.error(f"[job_id={job_id}] Job failed: {error}")

    def _close(self, job_id, **fields):
        db = self.session_factory()
        try:
            job = db.query(AnalysisJob).filter(AnalysisJob.job_id == job_id).first()
            if job:
                for key, value in fields.items():
                    setattr(job, key, value)
                job.finished_at = datetime.now(timezone.utc)
                db.commit()
        finally:
            db.close()
        with self.lock:
            self.jobs.pop(job_id, None)

    def active_jobs(self, tool_id: Optional[str] = None) -> Dict[str, dict]:
        with self.lock:
            return {job_id: dict(job) for job_id, job in self.jobs.items()
                    if tool_id is None or job["tool_id"] == tool_id}

    def get_status(self, job_id: str) -> dict:
        db = self.session_factory()
        try:
            job = db.query(AnalysisJob).filter(AnalysisJob.job_id == job_id).first()
        finally:
            db.close()
        if job:
            return _serialize(job)
        return {"job_id": job_id, "status": "not_found"}

    def history(self, tool_id: Optional[str] = None, status: Optional[str] = None, limit: int = 20, offset: int = 0):
        db = self.session_factory()
        try:
            query = db.query(AnalysisJob)
            if tool_id:
                query = query.filter(AnalysisJob.tool_id == tool_id)
            if status:
                query = query.filter(AnalysisJob.status == status)
            jobs = query.order_by(AnalysisJob.created_at.desc(), AnalysisJob.id.desc()).offset(offset).limit(limit).all()
        finally:
            db.close()
        return [_serialize(job) for job in jobs]


def _serialize(job: AnalysisJob) -> dict:
    return {
        "job_id": job.job_id,
        "tool_id": job.tool_id,
        "uploaded_filename": job.uploaded_filename,
        "status": job.status,
        "completed": job.completed,
        "result_size": job.result_size,
        "error": job.error,
        "created_at": str(job.created_at),
        "finished_at": str(job.finished_at) if job.finished_at else None,
    }
