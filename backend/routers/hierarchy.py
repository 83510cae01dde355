from fastapi import APIRouter, Query

from analytics.hierarchy import build_hierarchy, describe_row, filter_users, paginate
from db import get_db
from queries.users import fetch_users

router = APIRouter()


@router.get("/api/hierarchy")
def get_hierarchy(
    expanded:   list[str] = Query(default=[]),
    search:     str       = "",
    status:     str       = Query("active", pattern="^(all|active|inactive)$"),
    role:       str       = "all",
    role_type:  str       = Query("all", pattern="^(all|agents|team_leaders|cc_managers)$"),
    page:       int       = Query(1, ge=1),
    per_page:   int       = Query(10, ge=1, le=200),
    expand_all: bool      = False,
):
    """
    Indented user-table rows, one page at a time.

    `expanded` may be repeated; `expand_all` opens every manager.
    """
    conn  = get_db()
    users = fetch_users(conn)
    conn.close()

    filtered = filter_users(users, search=search, status=status, role=role, role_type=role_type)
    open_ids = {u["id"] for u in filtered} if expand_all else set(expanded)
    rows = build_hierarchy(filtered, open_ids, universe=users)

    result = paginate(rows, page, per_page)
    result["items"] = [describe_row(r, users) for r in result["items"]]
    result["filtered_users"] = len(filtered)
    return result
