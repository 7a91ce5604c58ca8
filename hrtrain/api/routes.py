"""API routes for training records, batch import, dashboard and accounts."""
from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from hrtrain.database import get_db
from hrtrain.api.deps import get_active_principal, get_principal, get_workspace, require_admin
from hrtrain.models.audit import AuditEventType
from hrtrain.models.domain import CompanyPermission, Course, User
from hrtrain.models.enums import TrainingType, ViewName
from hrtrain.services import accounts
from hrtrain.services.audit_trail import AuditTrail
from hrtrain.services.batch_import import ImportSession, ImportSessionRegistry
from hrtrain.services.errors import PersistenceError, RefusalError
from hrtrain.services.normalizer import CSV_HEADER, SAMPLE_ROWS
from hrtrain.services.permissions import allowed_companies, allowed_departments
from hrtrain.services.store import SqlUserStore
from hrtrain.services.workspace import Workspace
from hrtrain.api.schemas import (
    BatchDeleteRequest,
    BatchOutcomeResponse,
    ChangePasswordRequest,
    CourseResponse,
    CourseWrite,
    DashboardResponse,
    DashboardStatsResponse,
    ImportSessionResponse,
    ImportTemplateResponse,
    ImportTextRequest,
    LoginRequest,
    MonthGroup,
    MonthlyPoint,
    RefusalResponse,
    RowRejectionResponse,
    TaxonomyResponse,
    UserResponse,
    UserWrite
)

router = APIRouter()


def refusal_to_http(e: RefusalError) -> HTTPException:
    code = status.HTTP_403_FORBIDDEN if e.forbidden else status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail={"message": e.message})


def persistence_to_http(e: PersistenceError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"message": e.message, "record_ids": e.record_ids}
    )


def get_import_registry(request: Request) -> ImportSessionRegistry:
    return request.app.state.import_sessions


def import_session_response(session: ImportSession) -> ImportSessionResponse:
    result = session.result
    return ImportSessionResponse(
        id=session.id,
        stage=session.stage,
        accepted_count=result.accepted_count if result else 0,
        rejected_count=result.rejected_count if result else 0,
        accepted=[CourseResponse.model_validate(c) for c in result.accepted] if result else [],
        rejected=[RowRejectionResponse.model_validate(r) for r in result.rejected] if result else [],
        error=session.error
    )


# Auth endpoints
@router.post("/auth/login", response_model=UserResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Check username and password. Clients send the returned id as X-User-Id."""
    user = accounts.login(SqlUserStore(db), credentials.username, credentials.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")
    return user


@router.post("/auth/change-password", response_model=UserResponse)
def change_password(
    data: ChangePasswordRequest,
    principal: User = Depends(get_principal),
    db: Session = Depends(get_db)
):
    """Allowed even while a password change is forced."""
    try:
        user = accounts.change_password(SqlUserStore(db), principal, data.new_password, data.confirm_password)
    except RefusalError as e:
        raise refusal_to_http(e)
    AuditTrail(db).record(AuditEventType.PASSWORD_CHANGED, "User", user.id, user_id=user.id)
    return user


@router.get("/taxonomy", response_model=TaxonomyResponse)
def get_taxonomy(principal: User = Depends(get_active_principal)):
    """Companies and departments the principal may pick when creating a course."""
    companies = allowed_companies(principal)
    return TaxonomyResponse(
        companies=companies,
        departments={company: allowed_departments(principal, company) for company in companies}
    )


# Course endpoints
@router.get("/courses", response_model=List[CourseResponse])
def list_courses(
    start_from: Optional[str] = None,
    start_to: Optional[str] = None,
    training_type: Optional[TrainingType] = None,
    workspace: Workspace = Depends(get_workspace)
):
    """List the courses visible to the principal."""
    workspace.set_view(ViewName.LIST)
    return workspace.filtered(start_from, start_to, training_type)


@router.get("/courses/by-month", response_model=List[MonthGroup])
def list_courses_by_month(workspace: Workspace = Depends(get_workspace)):
    """Visible courses grouped by start month."""
    return [
        MonthGroup(month=month, courses=[CourseResponse.model_validate(c) for c in courses])
        for month, courses in workspace.grouped_by_month().items()
    ]


@router.post("/courses/batch-delete", response_model=BatchOutcomeResponse, responses={
    400: {"model": RefusalResponse, "description": "Not confirmed"},
    502: {"description": "Persistence failed; nothing was deleted"}
})
def batch_delete_courses(data: BatchDeleteRequest, workspace: Workspace = Depends(get_workspace)):
    """
    Delete several courses at once.

    Ids outside the principal's visible, deletable scope are not deleted and
    are counted as failed.
    """
    if not data.confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Batch delete requires confirmation."}
        )
    workspace.set_view(ViewName.LIST)
    out_of_scope = workspace.selection.select_only(data.ids, workspace.courses)
    outcome = workspace.batch_delete(lambda count: data.confirm)
    outcome.failed += len(out_of_scope)
    if outcome.error:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"message": outcome.error, "succeeded": outcome.succeeded, "failed": outcome.failed}
        )
    return outcome


@router.get("/courses/{course_id}", response_model=CourseResponse)
def get_course(course_id: str, workspace: Workspace = Depends(get_workspace)):
    course = workspace.get_visible(course_id)
    if course is None:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


@router.post("/courses", response_model=CourseResponse, status_code=status.HTTP_201_CREATED, responses={
    403: {"model": RefusalResponse, "description": "No permission for the company/department"}
})
def create_course(data: CourseWrite, workspace: Workspace = Depends(get_workspace)):
    """Create a course. createdBy follows the principal's role."""
    try:
        return workspace.save_course(Course(**data.model_dump()))
    except RefusalError as e:
        raise refusal_to_http(e)
    except PersistenceError as e:
        raise persistence_to_http(e)


@router.put("/courses/{course_id}", response_model=CourseResponse)
def update_course(course_id: str, data: CourseWrite, workspace: Workspace = Depends(get_workspace)):
    """Edit a visible course in place."""
    if workspace.get_visible(course_id) is None:
        raise HTTPException(status_code=404, detail="Course not found")
    try:
        return workspace.save_course(Course(id=course_id, **data.model_dump()))
    except RefusalError as e:
        raise refusal_to_http(e)
    except PersistenceError as e:
        raise persistence_to_http(e)


@router.delete("/courses/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(course_id: str, workspace: Workspace = Depends(get_workspace)):
    try:
        workspace.delete_course(course_id)
    except LookupError:
        raise HTTPException(status_code=404, detail="Course not found")
    except RefusalError as e:
        raise refusal_to_http(e)
    except PersistenceError as e:
        raise persistence_to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Import endpoints
@router.get("/imports/template", response_model=ImportTemplateResponse)
def import_template(principal: User = Depends(get_active_principal)):
    return ImportTemplateResponse(header=CSV_HEADER, sample=SAMPLE_ROWS)


def _open_and_parse(workspace: Workspace, registry: ImportSessionRegistry, load) -> ImportSession:
    session = workspace.start_import(registry)
    try:
        load(session)
        session.parse()
    except RefusalError as e:
        registry.close(session.id)
        raise refusal_to_http(e)
    return session


@router.post("/imports", response_model=ImportSessionResponse, status_code=status.HTTP_201_CREATED)
def create_import(
    data: ImportTextRequest,
    workspace: Workspace = Depends(get_workspace),
    registry: ImportSessionRegistry = Depends(get_import_registry)
):
    """Parse pasted CSV text into a preview of accepted and rejected rows."""
    session = _open_and_parse(workspace, registry, lambda s: s.load_text(data.text))
    return import_session_response(session)


@router.post("/imports/upload", response_model=ImportSessionResponse, status_code=status.HTTP_201_CREATED)
async def upload_import(
    file: UploadFile = File(...),
    workspace: Workspace = Depends(get_workspace),
    registry: ImportSessionRegistry = Depends(get_import_registry)
):
    """Same as POST /imports, reading the rows from an uploaded CSV file."""
    content = await file.read()
    session = _open_and_parse(workspace, registry, lambda s: s.load_file(content))
    return import_session_response(session)


def _get_session(session_id: str, principal: User, registry: ImportSessionRegistry) -> ImportSession:
    session = registry.get(session_id, principal)
    if session is None:
        raise HTTPException(status_code=404, detail="Import session not found")
    return session


@router.get("/imports/{session_id}", response_model=ImportSessionResponse)
def get_import(
    session_id: str,
    principal: User = Depends(get_active_principal),
    registry: ImportSessionRegistry = Depends(get_import_registry)
):
    return import_session_response(_get_session(session_id, principal, registry))


@router.put("/imports/{session_id}/text", response_model=ImportSessionResponse)
def reparse_import(
    session_id: str,
    data: ImportTextRequest,
    principal: User = Depends(get_active_principal),
    registry: ImportSessionRegistry = Depends(get_import_registry)
):
    """Replace the input of a session that went back to Input, and parse again."""
    session = _get_session(session_id, principal, registry)
    try:
        session.load_text(data.text)
        session.parse()
    except RefusalError as e:
        raise refusal_to_http(e)
    return import_session_response(session)


@router.post("/imports/{session_id}/back", response_model=ImportSessionResponse)
def import_back(
    session_id: str,
    principal: User = Depends(get_active_principal),
    registry: ImportSessionRegistry = Depends(get_import_registry)
):
    session = _get_session(session_id, principal, registry)
    try:
        session.back()
    except RefusalError as e:
        raise refusal_to_http(e)
    return import_session_response(session)


@router.post("/imports/{session_id}/commit", response_model=ImportSessionResponse, responses={
    502: {"description": "Persistence failed; the preview is kept for retry"}
})
def commit_import(
    session_id: str,
    workspace: Workspace = Depends(get_workspace),
    registry: ImportSessionRegistry = Depends(get_import_registry)
):
    """
    Write the accepted records. On failure the session stays in Preview.

    Result is terminal, so a committed session is closed and this response is
    its last view.
    """
    session = _get_session(session_id, workspace.principal, registry)
    try:
        workspace.commit_import(session)
    except RefusalError as e:
        raise refusal_to_http(e)
    except PersistenceError as e:
        raise persistence_to_http(e)
    registry.close(session.id)
    return import_session_response(session)


@router.delete("/imports/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def close_import(
    session_id: str,
    principal: User = Depends(get_active_principal),
    registry: ImportSessionRegistry = Depends(get_import_registry)
):
    _get_session(session_id, principal, registry)
    registry.close(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Dashboard and export
@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(workspace: Workspace = Depends(get_workspace)):
    """KPIs, monthly series and status breakdown over visible courses."""
    data = workspace.dashboard()
    return DashboardResponse(
        stats=DashboardStatsResponse(**asdict(data["stats"])),
        monthly=[MonthlyPoint(**point) for point in data["monthly"]],
        status=data["status"]
    )


@router.get("/export")
def export_courses(
    start_from: Optional[str] = None,
    start_to: Optional[str] = None,
    training_type: Optional[TrainingType] = None,
    workspace: Workspace = Depends(get_workspace)
):
    """Visible courses as CSV in the import row format."""
    content = workspace.export(start_from, start_to, training_type)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="courses.csv"'}
    )


# User management (SystemAdmin only)
@router.get("/users", response_model=List[UserResponse])
def list_users(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return SqlUserStore(db).list_users()


@router.put("/users/{user_id}", response_model=UserResponse)
def save_user(
    user_id: str,
    data: UserWrite,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create or replace a principal and its company permissions."""
    user = User(
        id=user_id,
        username=data.username,
        password=data.password,
        name=data.name,
        role=data.role,
        must_change_password=data.must_change_password,
        permissions=[
            CompanyPermission(
                company=p.company,
                view_all_departments=p.view_all_departments,
                allowed_departments=list(p.allowed_departments)
            )
            for p in data.permissions
        ]
    )
    try:
        return accounts.save_user(SqlUserStore(db), user)
    except RefusalError as e:
        raise refusal_to_http(e)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        accounts.delete_user(SqlUserStore(db), user_id)
    except LookupError:
        raise HTTPException(status_code=404, detail="User not found")
    except RefusalError as e:
        raise refusal_to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
