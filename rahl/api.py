"""FastAPI service exposing project generation over HTTP.

Routes::

    POST   /api/generate/v2          synchronous keyword pipeline
    POST   /api/generate             start a background generation
    GET    /api/project/{id}         poll status / progress / logs
    GET    /api/project/{id}/files   generated files once completed
    DELETE /api/project/{id}         cancel a running generation
    GET    /api/download/{id}        download manifest
    GET    /api/health               liveness, LLM reachability and installed models
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, FastAPI, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from rahl.config import Config
from rahl.errors import GenerationError, InputValidationError, ProjectNotFoundError
from rahl.llm_client import OllamaClient
from rahl.orchestrator import GenerationOrchestrator
from rahl.scaffolder.generator import BASE_FILES
from rahl.utils import print_error

router = APIRouter(prefix="/api")

NEXT_STEPS: list[str] = [
    "Download the project ZIP",
    "Open in VS Code/Android Studio",
    'Run "flutter pub get"',
    "Test on emulator/device",
]


class GenerateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    description: str | None = None
    app_name: str | None = None
    platform: str = Field(default="both", pattern="^(both|android|ios)$")


def _orchestrator(request: Request) -> GenerationOrchestrator:
    return request.app.state.orchestrator


def _require_description(req: GenerateRequest) -> str:
    if not req.description or not req.description.strip():
        raise HTTPException(status_code=400, detail="App description is required")
    return req.description


@router.post("/generate/v2", response_model=dict[str, Any])
async def generate_v2(req: GenerateRequest, request: Request):
    """Run the keyword extractor + synthesizer and report the result."""
    description = _require_description(req)
    try:
        record = _orchestrator(request).generate_base(description, req.app_name)
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        print_error(f"Generation error: {e}")
        raise HTTPException(status_code=500, detail=f"Generation failed: {e}")

    project = record.project

    return {
        "success": True,
        "projectId": project.project_id,
        "appName": project.app_name,
        "packageName": project.package_name,
        "features": project.features.to_wire(),
        "files": list(project.files),
        "message": "RAHL has generated your Flutter app!",
        "nextSteps": NEXT_STEPS,
        "platforms": ["android", "ios"] if req.platform == "both" else [req.platform],
    }


@router.post("/generate", status_code=202, response_model=dict[str, Any])
async def generate(req: GenerateRequest, request: Request):
    """Start a background generation and return its id for polling."""
    description = _require_description(req)
    try:
        record = _orchestrator(request).start(description, req.app_name)
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "projectId": record.project_id,
        "status": record.status.value,
        "progress": record.progress,
    }


@router.get("/project/{project_id}", response_model=dict[str, Any])
async def project_status(project_id: str, request: Request):
    try:
        record = _orchestrator(request).get(project_id)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return record.to_status()


@router.get("/project/{project_id}/files", response_model=dict[str, Any])
async def project_files(project_id: str, request: Request):
    try:
        files = _orchestrator(request).files(project_id)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except GenerationError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"projectId": project_id, "files": files}


@router.delete("/project/{project_id}", response_model=dict[str, Any])
async def cancel_project(project_id: str, request: Request):
    try:
        record = _orchestrator(request).cancel(project_id)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return record.to_status()


@router.get("/download/{project_id}", response_model=dict[str, Any])
async def download(project_id: str, request: Request):
    """Describe the downloadable artefact; archive creation lives elsewhere."""
    record = _orchestrator(request).store.get(project_id)
    files = list(record.project.files) if record and record.project else list(BASE_FILES)
    return {
        "projectId": project_id,
        "downloadUrl": f"/api/projects/{project_id}.zip",
        "files": files,
        "instructions": 'Run "flutter pub get" then "flutter run"',
    }


@router.get("/health", response_model=dict[str, Any])
async def health(request: Request):
    config: Config = _orchestrator(request).config
    llm_up = False
    models: list[str] = []
    if config.generation.use_ai:
        client = OllamaClient.from_config(config.llm)
        llm_up = await client.is_available()
        if llm_up:
            models = await client.list_models()
    return {
        "status": "ok",
        "llm": llm_up,
        "model": config.llm.model,
        "modelInstalled": config.llm.model in models,
        "models": models,
    }


def create_app(
    config: Config | None = None,
    orchestrator: GenerationOrchestrator | None = None,
) -> FastAPI:
    """Build the FastAPI application around one orchestrator."""
    config = config or Config.from_env()
    app = FastAPI(title="RAHL - Rapid App Helper & Launcher")
    app.state.orchestrator = orchestrator or GenerationOrchestrator(config, verbose=True)
    app.include_router(router)
    return app
