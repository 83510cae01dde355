from typing import Annotated, Optional

from fastapi import APIRouter, HTTPException
from pydantic import AfterValidator, BaseModel, Field

from analytics.hierarchy import direct_reports
from analytics.roles import Role, parse_role
from db import get_db
from queries.users import (
    DuplicateUser,
    HierarchyConflict,
    UserNotFound,
    create_user,
    delete_user,
    fetch_user,
    fetch_users,
    fetch_users_by_role,
    set_reports_to,
    update_user,
)

router = APIRouter()


def _role(v: str) -> str:
    return parse_role(v).value


def _manager(v: str) -> Optional[str]:
    return v or None


RoleName  = Annotated[str, AfterValidator(_role)]
ManagerId = Annotated[str, AfterValidator(_manager)]


class UserCreate(BaseModel):
    username:     str                 = Field(..., min_length=1)
    email:        Optional[str]       = None
    firstName:    Optional[str]       = None
    lastName:     Optional[str]       = None
    role:         RoleName            = Role.AGENT.value
    departmentId: Optional[str]       = None
    reportsTo:    Optional[ManagerId] = None
    isActive:     bool                = True


class UserUpdate(BaseModel):
    username:     Optional[str]       = Field(None, min_length=1)
    email:        Optional[str]       = None
    firstName:    Optional[str]       = None
    lastName:     Optional[str]       = None
    role:         Optional[RoleName]  = None
    departmentId: Optional[str]       = None
    reportsTo:    Optional[ManagerId] = None
    isActive:     Optional[bool]      = None


class RoleUpdate(BaseModel):
    role: RoleName


class StatusUpdate(BaseModel):
    isActive: bool


class TeamLeaderAssignment(BaseModel):
    teamLeaderId: str


_REQUIRED_FIELDS = ("username", "role", "isActive")


def _http_error(ex: Exception) -> HTTPException:
    if isinstance(ex, UserNotFound):
        return HTTPException(status_code=404, detail=str(ex))
    if isinstance(ex, DuplicateUser):
        return HTTPException(status_code=409, detail=str(ex))
    status = 400 if ex.reason in ("unknown_node", "unknown_parent") else 409
    return HTTPException(status_code=status, detail={"reason": ex.reason, "message": str(ex)})


@router.get("/api/users")
def list_users():
    conn = get_db()
    users = fetch_users(conn)
    conn.close()
    return users


@router.post("/api/users")
def add_user(req: UserCreate):
    conn = get_db()
    try:
        return create_user(conn, req.model_dump())
    except (DuplicateUser, HierarchyConflict) as ex:
        raise _http_error(ex) from ex
    finally:
        conn.close()


@router.get("/api/team-leaders")
def list_team_leaders():
    conn = get_db()
    leaders = fetch_users_by_role(conn, Role.TEAM_LEADER.value)
    conn.close()
    return leaders


@router.get("/api/users/{user_id}")
def get_user(user_id: str):
    conn = get_db()
    try:
        return fetch_user(conn, user_id)
    except UserNotFound as ex:
        raise _http_error(ex) from ex
    finally:
        conn.close()


@router.get("/api/users/{user_id}/direct-reports")
def get_direct_reports(user_id: str):
    conn = get_db()
    try:
        fetch_user(conn, user_id)
        return direct_reports(fetch_users(conn), user_id)
    except UserNotFound as ex:
        raise _http_error(ex) from ex
    finally:
        conn.close()


@router.patch("/api/users/{user_id}")
def edit_user(user_id: str, req: UserUpdate):
    changes = {
        k: v for k, v in req.model_dump(exclude_unset=True).items()
        if v is not None or k not in _REQUIRED_FIELDS
    }
    conn = get_db()
    try:
        return update_user(conn, user_id, changes)
    except (UserNotFound, DuplicateUser, HierarchyConflict) as ex:
        raise _http_error(ex) from ex
    finally:
        conn.close()


@router.patch("/api/users/{user_id}/role")
def change_role(user_id: str, req: RoleUpdate):
    conn = get_db()
    try:
        return update_user(conn, user_id, {"role": req.role})
    except UserNotFound as ex:
        raise _http_error(ex) from ex
    finally:
        conn.close()


@router.patch("/api/users/{user_id}/status")
def change_status(user_id: str, req: StatusUpdate):
    conn = get_db()
    try:
        return update_user(conn, user_id, {"isActive": req.isActive})
    except UserNotFound as ex:
        raise _http_error(ex) from ex
    finally:
        conn.close()


@router.post("/api/users/{user_id}/reassign-team-leader")
def reassign_team_leader(user_id: str, req: TeamLeaderAssignment):
    conn = get_db()
    try:
        leader = fetch_user(conn, req.teamLeaderId)
        if leader["role"] != Role.TEAM_LEADER.value or not leader["isActive"]:
            raise HTTPException(status_code=400, detail="Target is not an active team leader")
        user = set_reports_to(conn, user_id, leader["id"])
        return {"message": "Agent successfully reassigned", "user": user}
    except (UserNotFound, HierarchyConflict) as ex:
        raise _http_error(ex) from ex
    finally:
        conn.close()


@router.delete("/api/users/{user_id}")
def remove_user(user_id: str):
    conn = get_db()
    try:
        detached = delete_user(conn, user_id)
        return {"message": "User deleted successfully", "detached_reports": detached}
    except UserNotFound as ex:
        raise _http_error(ex) from ex
    finally:
        conn.close()
