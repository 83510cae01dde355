import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from analytics.org_chart import find_reporting_cycles, org_stats, reparent, to_org_nodes
from db import get_db
from queries.users import HierarchyConflict, fetch_users, set_reports_to

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/organogram")
def get_organogram():
    conn  = get_db()
    users = fetch_users(conn)
    conn.close()
    return {"nodes": to_org_nodes(users), "stats": org_stats(users)}


class ReparentRequest(BaseModel):
    userId:      str
    newParentId: str


@router.post("/api/organogram/reparent")
def reparent_node(req: ReparentRequest):
    """
    Drag-and-drop handler: validate against the chart as displayed, then
    persist the new manager.
    """
    conn = get_db()
    try:
        nodes  = to_org_nodes(fetch_users(conn))
        result = reparent(nodes, req.userId, req.newParentId)
        if not result["accepted"]:
            logger.warning(
                "Rejected reparent of %s under %s (%s)", req.userId, req.newParentId, result["reason"]
            )
            raise HTTPException(
                status_code=409,
                detail={"reason": result["reason"], "message": "Reparent rejected"},
            )
        user = set_reports_to(conn, req.userId, req.newParentId)
    except HierarchyConflict as ex:
        raise HTTPException(status_code=409, detail={"reason": ex.reason, "message": str(ex)}) from ex
    finally:
        conn.close()
    return {"accepted": True, "user": user}


@router.get("/api/organogram/cycles")
def get_cycles():
    conn  = get_db()
    users = fetch_users(conn)
    conn.close()
    cycles = find_reporting_cycles(users)
    if cycles:
        logger.warning("Found %d reporting cycle(s) in user data", len(cycles))
    return {"cycles": cycles, "count": len(cycles)}
