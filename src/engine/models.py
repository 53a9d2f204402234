# src/engine/models.py
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean
from sqlalchemy.orm import declarative_base
from datetime import datetime, timezone

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


class AnalysisJob(Base):
    __tablename__ = 'analysis_jobs'
    id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(String, unique=True, nullable=False)
    tool_id = Column(String, nullable=False, index=True)
    uploaded_filename = Column(String, nullable=False)
    status = Column(String, default='running')  # running | completed | partial | failed
    completed = Column(Boolean, nullable=True)
    result_size = Column(Integer, nullable=True)  # bytes of raw result text
    created_at = Column(DateTime, default=_utcnow)
    finished_at = Column(DateTime, nullable=True)
    error = Column(Text, nullable=True)
