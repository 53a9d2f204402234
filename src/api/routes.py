# src/api/routes.py
from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from typing import List, Optional
from api.schemas import AnalysisResponse, FindingGroups, ParseRequest, ParseResponse, ToolInfo
from engine.config import settings
from engine.job_manager import JobManager
from engine.orchestrator import JobOrchestrator, UploadedApk, accepts_upload
from engine.registry import load_registry
from parsers.dialects import dialect_for_tool, get_dialect
from tools.docker_adapter import DockerAdapter
from utils.report_utils import calculate_vulnerability_stats, group_findings
import logging

router = APIRouter()

registry = load_registry(settings.registry_file, settings.tools_dir)
job_manager = JobManager()
orchestrator = JobOrchestrator(
    registry,
    DockerAdapter(output_buffer_bytes=settings.output_buffer_bytes, timeout=settings.container_timeout),
    job_manager=job_manager,
    max_upload_bytes=settings.max_upload_bytes,
)


@router.get("/health")
def health_check():
    return {"status": "ok"}


@router.get(
    "/api/tools",
    summary="List registered analysis tools",
    tags=["Tools"],
    response_model=List[ToolInfo],
)
def list_tools():
    return [
        ToolInfo(id=tool.id, name=tool.name, dialect=tool.dialect,
                 supports_partial=tool.supports_partial, endpoint=f"/api/{tool.id}")
        for tool in registry
    ]


@router.post(
    "/api/parse",
    summary="Parse raw scanner output into structured findings",
    tags=["Parsing"],
    response_model=ParseResponse,
    responses={
        200: {"description": "Parsed findings"},
        404: {"description": "Unknown tool or dialect"},
    },
)
def parse_output(request: ParseRequest):
    """
    Parse raw output with the dialect of `tool_id`, or with `dialect` directly.
    """
    try:
        if request.tool_id:
            dialect = dialect_for_tool(registry, request.tool_id)
        else:
            dialect = get_dialect(request.dialect)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    report = dialect.parse(request.raw_text)
    return ParseResponse(report=report, stats=calculate_vulnerability_stats(report), groups=group_findings(report))


@router.get(
    "/api/jobs/history",
    summary="Query analysis job history",
    tags=["Jobs"],
    response_model=list,
)
def get_job_history(tool_id: str = None, status: str = None, limit: int = 20, offset: int = 0):
    """
    Query finished and running jobs by tool and/or status.
    """
    return job_manager.history(tool_id=tool_id, status=status, limit=limit, offset=offset)


@router.get(
    "/api/jobs/active",
    summary="List jobs that have not finished yet",
    tags=["Jobs"],
    response_model=dict,
)
def get_active_jobs(tool_id: str = None):
    return job_manager.active_jobs(tool_id)


@router.get(
    "/api/jobs/{job_id}",
    summary="Get analysis job status",
    tags=["Jobs"],
    response_model=dict,
    responses={
        200: {"description": "Job status"},
        404: {"description": "Job not found"},
    },
)
def get_job_status(job_id: str):
    status = job_manager.get_status(job_id)
    if status["status"] == "not_found":
        raise HTTPException(status_code=404, detail=f"Job not found: {job_id}")
    return status


def _analysis_endpoint(tool_id: str):
    def analyze(
        apk: Optional[UploadFile] = File(None, description="APK file to analyze"),
        parse: bool = Query(False, description="Also return structured findings"),
    ):
        upload = None
        if apk is not None and accepts_upload(apk.filename, apk.content_type):
            upload = UploadedApk(apk.filename, apk.file, size=apk.size, content_type=apk.content_type)
        elif apk is not None:
            logging.info(f"Dropped upload {apk.filename!r} ({apk.content_type}) for {tool_id}: not an APK")

        outcome = orchestrator.run(tool_id, upload)

        response = AnalysisResponse(
            tool_id=outcome.tool_id,
            uploaded_filename=outcome.uploaded_filename,
            completed=outcome.completed,
            raw_text=outcome.raw_text,
            job_id=outcome.job_id,
        )
        if parse:
            report = dialect_for_tool(registry, tool_id).parse(outcome.raw_text)
            response.report = report
            response.stats = calculate_vulnerability_stats(report)
            response.groups = FindingGroups(**group_findings(report))
        return response

    analyze.__name__ = f"analyze_{tool_id.replace('-', '_')}"
    return analyze


for _tool in registry:
    router.add_api_route(
        f"/api/{_tool.id}",
        _analysis_endpoint(_tool.id),
        methods=["POST"],
        summary=f"Analyze an APK with {_tool.name}",
        tags=["Analysis"],
        response_model=AnalysisResponse,
        responses={
            200: {"description": "Raw result, complete or partial"},
            400: {"description": "No APK file provided, wrong extension or oversize"},
            500: {"description": "Container run failed or produced no result"},
        },
    )
