"""
Nova Dream API — FastAPI endpoints.

Exposes the application's core via a REST API for:
- Assistant chat and action-card confirmation
- Task, revenue and project listings
- Roadmap import: diff, apply, report and history
- Document upload, signed download and analysis
"""

import base64
import binascii
import logging
from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from fastapi import BackgroundTasks, Depends, FastAPI, Header, HTTPException, Query, Response
from pydantic import BaseModel

from nova_dream.assistant.client import AssistantClient, AssistantError, ChatMessage
from nova_dream.assistant.dates import replace_dates_in_text
from nova_dream.assistant.prompt import build_system_prompt, gather_context
from nova_dream.directives.actions import render_card
from nova_dream.directives.board import BoardRegistry, ConfirmStatus, DirectiveBoard
from nova_dream.directives.executor import ActionExecutor
from nova_dream.directives.parser import parse_directives, strip_directives
from nova_dream.documents.analysis import DocumentAnalyzer
from nova_dream.documents.library import delete_document, is_analyzable, upload_document
from nova_dream.missions.apply import BulkApplier, BulkApplyError
from nova_dream.missions.diff import compare_missions, summarize_diffs
from nova_dream.missions.report import (
    build_import_history,
    generate_import_report,
    generate_report_title,
    save_import_history,
    save_import_report,
)
from nova_dream.missions.roadmap import parse_roadmap_text
from nova_dream.models.config import Settings
from nova_dream.models.directive import DirectiveKey, Segment
from nova_dream.models.mission import (
    DiffClassification,
    MissionDiff,
    MissionStatus,
    ProposedMission,
    StoredMission,
)
from nova_dream.store.blobs import BlobStore
from nova_dream.store.records import QueryCache, RecordStore, StoreError

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Process-wide logging setup. No-op once handlers exist."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


# --- Request/Response Models ---

class ContentRequest(BaseModel):
    content: str


class ProjectCreateRequest(BaseModel):
    name: str
    segment: Segment = Segment.OTHER
    status: str = "planned"
    description: Optional[str] = None
    deadline: Optional[str] = None
    budget: Optional[float] = None


class MissionCreateRequest(BaseModel):
    title: str
    description: Optional[str] = None
    estimated_duration: Optional[str] = None
    deadline: Optional[str] = None


class RoadmapDiffRequest(BaseModel):
    text: Optional[str] = None
    missions: Optional[List[ProposedMission]] = None


class RoadmapApplyRequest(BaseModel):
    diffs: List[MissionDiff]
    imported_by: Optional[str] = None
    save_report: bool = True


class ChatRequest(BaseModel):
    messages: List[ChatMessage]


class DocumentUploadRequest(BaseModel):
    name: str
    content_base64: str
    mime_type: Optional[str] = None
    segment: Optional[str] = None
    mode: str = "work"
    category: str = "other"
    description: Optional[str] = None
    analyze: bool = True


# --- Dependencies ---

def current_user(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    return x_user_id or None


def require_user(user_id: Optional[str] = Depends(current_user)) -> str:
    if not user_id:
        raise HTTPException(401, "You must be signed in")
    return user_id


# --- Application Factory ---

def create_app(
    store: Optional[RecordStore] = None,
    blobs: Optional[BlobStore] = None,
    assistant: Optional[AssistantClient] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Nova Dream API",
        description="Assistant action cards and roadmap reconciliation",
        version="0.1.0",
    )

    # Initialize components
    rs = store or RecordStore()
    bs = blobs or BlobStore()
    cache = QueryCache(rs)
    executor = ActionExecutor(rs, cache=cache)
    applier = BulkApplier(rs, cache=cache)
    client = assistant or AssistantClient(settings.assistant)
    analyzer = DocumentAnalyzer(rs, bs, client, cache=cache)
    boards = BoardRegistry(max_boards=settings.max_boards)

    # Store components on app state for access in endpoints
    app.state.settings = settings
    app.state.store = rs
    app.state.blobs = bs
    app.state.cache = cache
    app.state.executor = executor
    app.state.applier = applier
    app.state.assistant = client
    app.state.analyzer = analyzer
    app.state.boards = boards

    def register_board(content: str, user_id: str) -> DirectiveBoard:
        return boards.register(DirectiveBoard(
            content, executor, render_id=uuid4().hex[:12], owner_id=user_id
        ))

    def board_view(board: DirectiveBoard) -> dict:
        return {
            "render_id": board.render_id,
            "text": board.text,
            "cards": [c.model_dump(mode="json") for c in board.cards()],
        }

    def get_board(render_id: str, user_id: str) -> DirectiveBoard:
        try:
            return boards.get(render_id, user_id)
        except KeyError:
            raise HTTPException(404, "Message not found")

    def directive_key(board: DirectiveBoard, index: int) -> DirectiveKey:
        key = DirectiveKey(render_id=board.render_id, index=index)
        try:
            board.get(key)
        except KeyError:
            raise HTTPException(404, "Action not found")
        return key

    def get_project(project_id: str, user_id: str) -> dict:
        try:
            return rs.get("projects", project_id, user_id)
        except StoreError:
            raise HTTPException(404, "Project not found")

    def stored_missions(project_id: str, user_id: str) -> List[StoredMission]:
        rows = cache.select(
            "missions", user_id, order_by="order_index", project_id=project_id
        )
        return [StoredMission.model_validate(r) for r in rows]

    def verified_diff(diff: MissionDiff, project_id: str, user_id: str) -> MissionDiff:
        """Rebind an update diff to the stored mission it names, inside the project."""
        if diff.classification != DiffClassification.UPDATE:
            return diff
        if diff.existing is None:
            raise HTTPException(400, f"Update for '{diff.proposed.title}' names no mission")
        try:
            row = rs.get("missions", diff.existing.id, user_id)
        except StoreError:
            raise HTTPException(400, f"Update for '{diff.proposed.title}' targets an unknown mission")
        if row.get("project_id") != project_id:
            raise HTTPException(400, f"Update for '{diff.proposed.title}' targets another project")
        return diff.model_copy(update={"existing": StoredMission.model_validate(row)})

    def get_document(document_id: str, user_id: str) -> dict:
        try:
            return rs.get("documents", document_id, user_id)
        except StoreError:
            raise HTTPException(404, "Document not found")

    # === DIRECTIVES ===

    @app.post("/directives/parse")
    def parse_content(req: ContentRequest):
        """Parse a text without registering it."""
        directives = parse_directives(req.content)
        return {
            "text": strip_directives(req.content),
            "directives": [d.model_dump(mode="json") for d in directives],
            "cards": [render_card(d).model_dump(mode="json") for d in directives],
        }

    @app.post("/messages")
    def create_message(req: ContentRequest, user_id: str = Depends(require_user)):
        """Render a message and track its action cards."""
        return board_view(register_board(req.content, user_id))

    @app.get("/messages/{render_id}")
    def get_message(render_id: str, user_id: str = Depends(require_user)):
        return board_view(get_board(render_id, user_id))

    @app.post("/messages/{render_id}/directives/{index}/confirm")
    async def confirm_directive(
        render_id: str, index: int, user_id: str = Depends(require_user)
    ):
        """Execute an action card once."""
        board = get_board(render_id, user_id)
        outcome = await board.confirm(directive_key(board, index), user_id)
        if outcome.status == ConfirmStatus.IGNORED:
            raise HTTPException(409, outcome.message)
        if outcome.status == ConfirmStatus.FAILED:
            raise HTTPException(422, outcome.message)
        return outcome.model_dump(mode="json")

    @app.post("/messages/{render_id}/directives/{index}/cancel")
    def cancel_directive(render_id: str, index: int, user_id: str = Depends(require_user)):
        board = get_board(render_id, user_id)
        state = board.cancel(directive_key(board, index))
        return {"render_id": render_id, "index": index, "state": state.value}

    # === RECORDS ===

    @app.get("/tasks")
    def list_tasks(user_id: str = Depends(require_user)):
        return cache.select("tasks", user_id, order_by="created_at")

    @app.get("/transactions")
    def list_transactions(user_id: str = Depends(require_user)):
        return cache.select("transactions", user_id, order_by="date")

    @app.get("/projects")
    def list_projects(user_id: str = Depends(require_user)):
        return cache.select("projects", user_id, order_by="created_at")

    @app.post("/projects")
    def create_project(req: ProjectCreateRequest, user_id: str = Depends(require_user)):
        row = rs.insert("projects", {
            "name": req.name,
            "segment": req.segment.value,
            "mode": "work",
            "status": req.status,
            "progress": 0,
            "description": req.description,
            "deadline": req.deadline,
            "budget": req.budget,
            "revenue_generated": None,
        }, user_id)[0]
        cache.invalidate("projects")
        return row

    @app.get("/projects/{project_id}/missions")
    def list_missions(project_id: str, user_id: str = Depends(require_user)):
        get_project(project_id, user_id)
        return [m.model_dump(mode="json") for m in stored_missions(project_id, user_id)]

    @app.post("/projects/{project_id}/missions")
    def create_mission(
        project_id: str, req: MissionCreateRequest, user_id: str = Depends(require_user)
    ):
        get_project(project_id, user_id)
        row = rs.insert("missions", {
            "project_id": project_id,
            "title": req.title,
            "description": req.description,
            "estimated_duration": req.estimated_duration,
            "deadline": req.deadline,
            "status": MissionStatus.PENDING.value,
            "order_index": applier.next_order_index(project_id, user_id),
        }, user_id)[0]
        cache.invalidate("missions")
        return StoredMission.model_validate(row).model_dump(mode="json")

    # === ROADMAP IMPORT ===

    @app.post("/projects/{project_id}/roadmap/diff")
    def diff_roadmap(
        project_id: str, req: RoadmapDiffRequest, user_id: str = Depends(require_user)
    ):
        """Preview how a roadmap reconciles with the project's missions."""
        get_project(project_id, user_id)
        if req.missions is not None:
            proposed = req.missions
        elif req.text is not None:
            proposed = parse_roadmap_text(req.text)
        else:
            raise HTTPException(400, "Provide roadmap text or missions")

        diffs = compare_missions(
            proposed, stored_missions(project_id, user_id), settings.reconcile
        )
        return {
            "diffs": [d.model_dump(mode="json") for d in diffs],
            "summary": summarize_diffs(diffs).model_dump(),
        }

    @app.post("/projects/{project_id}/roadmap/apply")
    def apply_roadmap(
        project_id: str, req: RoadmapApplyRequest, user_id: str = Depends(require_user)
    ):
        """Commit approved diffs, then report and record the import."""
        project = get_project(project_id, user_id)
        diffs = [verified_diff(diff, project_id, user_id) for diff in req.diffs]

        try:
            result = applier.apply(project_id, diffs, user_id)
        except BulkApplyError as e:
            raise HTTPException(500, {
                "message": str(e),
                "created": e.result.created,
                "updated": e.result.updated,
            })

        summary = summarize_diffs(diffs)
        imported_at = datetime.utcnow()
        report = generate_import_report(
            project_name=project.get("name", ""),
            import_date=imported_at,
            imported_by=req.imported_by or user_id,
            created=result.created,
            updated=result.updated,
            identical=summary.identical,
            total=summary.total,
            diffs=diffs,
        )
        history = save_import_history(
            rs,
            build_import_history(project_id, project.get("name", ""), diffs, imported_at),
            user_id,
        )

        document = None
        report_error = None
        if req.save_report:
            title = generate_report_title(project.get("name", ""), imported_at)
            try:
                document = save_import_report(rs, bs, project_id, title, report, user_id)
                document["url"] = bs.create_signed_url(
                    document["file_path"], settings.signed_url_ttl_seconds
                )
                cache.invalidate("documents")
            except StoreError as e:
                logger.error("Saving import report for %s failed: %s", project_id, e)
                report_error = str(e)

        return {
            "created": result.created,
            "updated": result.updated,
            "summary": summary.model_dump(),
            "report": report,
            "report_document": document,
            "report_error": report_error,
            "history_id": history["id"],
        }

    @app.get("/projects/{project_id}/imports")
    def list_imports(project_id: str, user_id: str = Depends(require_user)):
        get_project(project_id, user_id)
        return rs.select(
            "import_history", user_id,
            filters={"project_id": project_id},
            order_by="imported_at", descending=True,
        )

    # === DOCUMENTS ===

    @app.post("/documents")
    def create_document(
        req: DocumentUploadRequest,
        background: BackgroundTasks,
        user_id: str = Depends(require_user),
    ):
        """Store a file; images and PDFs are analyzed after the response."""
        try:
            data = base64.b64decode(req.content_base64, validate=True)
        except binascii.Error:
            raise HTTPException(400, "content_base64 is not valid base64")

        try:
            row = upload_document(
                rs, bs, user_id,
                name=req.name,
                data=data,
                mime_type=req.mime_type,
                segment=req.segment,
                mode=req.mode,
                category=req.category,
                description=req.description,
            )
        except StoreError as e:
            raise HTTPException(500, f"Upload failed: {e}")
        cache.invalidate("documents")

        if req.analyze and is_analyzable(row["mime_type"]):
            background.add_task(analyzer.analyze_in_background, row["id"], user_id)
        return row

    @app.get("/documents")
    def list_documents(user_id: str = Depends(require_user)):
        return cache.select("documents", user_id, order_by="created_at")

    @app.get("/documents/{document_id}")
    def get_document_view(document_id: str, user_id: str = Depends(require_user)):
        """Document row plus a time-limited download URL."""
        row = get_document(document_id, user_id)
        try:
            row["url"] = bs.create_signed_url(row["file_path"], settings.signed_url_ttl_seconds)
        except StoreError:
            raise HTTPException(404, "Document file is missing")
        return row

    @app.delete("/documents/{document_id}")
    def remove_document(document_id: str, user_id: str = Depends(require_user)):
        get_document(document_id, user_id)
        row = delete_document(rs, bs, document_id, user_id)
        cache.invalidate("documents")
        return {"id": row["id"], "deleted": True}

    @app.post("/documents/{document_id}/analyze")
    def analyze_document(document_id: str, user_id: str = Depends(require_user)):
        document = get_document(document_id, user_id)
        try:
            analysis = analyzer.analyze(document_id, user_id)
        except AssistantError as e:
            raise HTTPException(e.status_code, str(e))
        return {
            "analysis": analysis.model_dump(mode="json", by_alias=True),
            "document_name": document.get("name"),
            "document_segment": document.get("segment"),
        }

    @app.get("/storage/v1/object/sign/{bucket}/{path:path}")
    def signed_download(
        bucket: str,
        path: str,
        token: str = Query(...),
        expires: int = Query(...),
    ):
        """Serve a file to the holder of a valid signed URL."""
        if bucket != bs.bucket or not bs.verify_signature(path, token, expires):
            raise HTTPException(403, "Invalid or expired link")
        try:
            data = bs.get(path)
        except StoreError:
            raise HTTPException(404, "File not found")
        return Response(content=data, media_type=bs.content_type(path))

    # === ASSISTANT ===

    @app.post("/chat")
    def chat(req: ChatRequest, user_id: str = Depends(require_user)):
        """Ask the assistant; its reply is rendered with action cards."""
        if not req.messages:
            raise HTTPException(400, "No message to answer")

        messages = list(req.messages)
        last = messages[-1]
        if last.role == "user" and isinstance(last.content, str):
            messages[-1] = ChatMessage(role="user", content=replace_dates_in_text(last.content))

        context = gather_context(rs, user_id, settings.assistant)
        try:
            reply = client.complete(build_system_prompt(context), messages)
        except AssistantError as e:
            raise HTTPException(e.status_code, str(e))

        view = board_view(register_board(reply, user_id))
        view["content"] = reply
        return view

    return app


# Default application instance
app = create_app()
