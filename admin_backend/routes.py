"""
FastAPI Routes for the dashboard API.
"""
from datetime import date
from typing import Dict, Optional

from fastapi import APIRouter, Body, Depends, Form, HTTPException, Query
from fastapi.responses import JSONResponse
from loguru import logger

from admin_backend import auth
from admin_backend.export_service import export_country_matrix
from config import (
    DEFAULT_PAGE_SIZE,
    LEAD_COLUMNS,
    NOTE_MAX_LENGTH,
    STUDENT_COLUMNS,
)
from database import (
    create_note,
    delete_note,
    get_latest_sync_status,
    get_note,
    get_system_logs,
    list_notes,
    log_action,
    save_sync_status,
    update_note,
)
from google_sheets import records_store
from services.analytics import AnalyticsService
from services.calendar_picker import DateRangePicker
from services.lead_cache import lead_cache
from services.lead_filters import (
    filter_leads,
    filter_students,
    paginate,
    sort_leads,
    sort_students,
)
from utils.time_utils import DateRange, format_datetime, parse_local_ymd
from utils.validation import (
    clean_note_text,
    is_known_lead_status,
    is_known_student_status,
    sanitize_input,
)

# Routers
auth_router = APIRouter()
leads_router = APIRouter()
notes_router = APIRouter()
students_router = APIRouter()
analytics_router = APIRouter()
logs_router = APIRouter()
sync_router = APIRouter()

# Columns the client may never write
READ_ONLY_COLUMNS = {"ID", "Last_Update"}


def parse_range(start: Optional[str], end: Optional[str]) -> DateRange:
    """Build a DateRange from YYYY-MM-DD query values; endpoints are put in order."""
    if not start:
        if end:
            raise HTTPException(status_code=400, detail="'end' requires 'start'")
        return DateRange()

    start_date = parse_local_ymd(start)
    if start_date is None:
        raise HTTPException(status_code=400, detail=f"Invalid start date: {start}")
    if not end:
        return DateRange(start_date, None)

    end_date = parse_local_ymd(end)
    if end_date is None:
        raise HTTPException(status_code=400, detail=f"Invalid end date: {end}")
    if end_date < start_date:
        start_date, end_date = end_date, start_date
    return DateRange(start_date, end_date)


def clean_updates(updates: Dict, columns: Dict[str, int]) -> Dict[str, str]:
    """Validate an update payload against the writable columns."""
    unknown = [key for key in updates if key not in columns or key in READ_ONLY_COLUMNS]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown or read-only fields: {', '.join(unknown)}")
    return {key: "" if value is None else str(value).strip() for key, value in updates.items()}


def _actor(current_admin: dict) -> Dict[str, str]:
    return {
        "user_id": str(current_admin["id"]),
        "user_name": current_admin.get("full_name") or current_admin["email"],
    }


def _public_record(record: Dict) -> Dict:
    return {key: value for key, value in record.items() if not key.startswith("_")}


# ========== AUTH ROUTES ==========

@auth_router.post("/login")
async def login(email: str = Form(...), password: str = Form(...)):
    """Authenticate admin user and set the session cookie."""
    user = await auth.authenticate_admin(email, password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    access_token = auth.create_access_token(data={"sub": user["email"]})

    response = JSONResponse({
        "access_token": access_token,
        "token_type": "bearer",
        "user": auth.public_profile(user),
    })
    response.set_cookie(key="access_token", value=access_token, httponly=True, max_age=28800)
    return response


@auth_router.get("/logout")
async def logout():
    """Logout admin user."""
    response = JSONResponse({"success": True})
    response.delete_cookie(key="access_token")
    return response


@auth_router.get("/api/me")
async def me(current_admin: dict = Depends(auth.get_current_admin)):
    return JSONResponse({"user": auth.public_profile(current_admin)})


# ========== LEADS ROUTES ==========

@leads_router.get("/api/leads")
async def get_leads(
    search: Optional[str] = None,
    status: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    sort_by: str = "newest",
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    current_admin: dict = Depends(auth.get_current_admin)
):
    """Get leads with filtering, sorting and pagination."""
    date_range = parse_range(start, end)
    try:
        all_leads = await lead_cache.get_leads()
        filtered = sort_leads(filter_leads(all_leads, sanitize_input(search, 100), status, date_range), sort_by)
        result = paginate([_public_record(lead) for lead in filtered], page, page_size)
        result["loading"] = lead_cache.is_loading
        return JSONResponse(result)
    except Exception as e:
        logger.error(f"Error listing leads: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@leads_router.post("/api/leads/reload")
async def reload_leads(current_admin: dict = Depends(auth.get_current_admin)):
    """Re-fetch the lead list from the sheet."""
    try:
        leads = await lead_cache.reload()
        loaded_at = lead_cache.loaded_at
        return JSONResponse({
            "total": len(leads),
            "loaded_at": format_datetime(loaded_at) if loaded_at else None,
        })
    except Exception as e:
        logger.error(f"Error reloading leads: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@leads_router.get("/api/leads/{lead_id}")
async def get_lead_detail(lead_id: str, current_admin: dict = Depends(auth.get_current_admin)):
    """Get detailed information about a lead."""
    await lead_cache.get_leads()
    lead = lead_cache.find(lead_id)
    if not lead:
        raise HTTPException(status_code=404, detail="Lead not found")
    return JSONResponse({"lead": _public_record(lead)})


@leads_router.put("/api/leads/{lead_id}")
async def update_lead(
    lead_id: str,
    updates: Dict = Body(...),
    current_admin: dict = Depends(auth.get_current_admin)
):
    """Update fields of a lead."""
    try:
        await lead_cache.get_leads()
        lead = lead_cache.find(lead_id)
        if not lead:
            raise HTTPException(status_code=404, detail="Lead not found")

        updates = clean_updates(updates, LEAD_COLUMNS)
        if not updates:
            return JSONResponse({"success": False, "message": "No updates provided"})

        new_status = updates.get("Status")
        if new_status and not is_known_lead_status(new_status):
            logger.warning(f"Lead {lead_id} set to unrecognized status '{new_status}'")

        success = await records_store.update_lead(lead_id, updates)
        if not success:
            raise HTTPException(status_code=500, detail="Failed to update lead in Google Sheets")

        lead_cache.invalidate()
        old_status = lead.get("Status")
        await log_action(
            **_actor(current_admin),
            action_type="lead_updated",
            lead_id=lead_id,
            old_value=old_status,
            new_value=updates.get("Status", old_status),
            details=str(updates),
        )
        return JSONResponse({"success": True, "message": "Lead updated successfully"})
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating lead {lead_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ========== NOTES ROUTES ==========

@notes_router.get("/api/leads/{lead_id}/notes")
async def get_notes(lead_id: str, current_admin: dict = Depends(auth.get_current_admin)):
    """Notes of a lead, newest first."""
    notes = await list_notes(lead_id)
    return JSONResponse({"notes": notes})


@notes_router.post("/api/leads/{lead_id}/notes")
async def add_note(
    lead_id: str,
    content: str = Form(...),
    current_admin: dict = Depends(auth.get_current_admin)
):
    """Attach a note to a lead."""
    content = clean_note_text(content, NOTE_MAX_LENGTH)
    if not content:
        raise HTTPException(status_code=400, detail="Note content is required")

    note = await create_note(lead_id, content)
    await log_action(
        **_actor(current_admin),
        action_type="note_created",
        lead_id=lead_id,
        details=f"Note {note['id']}",
    )
    return JSONResponse({"note": note}, status_code=201)


@notes_router.put("/api/notes/{note_id}")
async def edit_note(
    note_id: int,
    content: str = Form(...),
    current_admin: dict = Depends(auth.get_current_admin)
):
    """Replace the text of a note."""
    content = clean_note_text(content, NOTE_MAX_LENGTH)
    if not content:
        raise HTTPException(status_code=400, detail="Note content is required")

    note = await get_note(note_id)
    if not note or not await update_note(note_id, content):
        raise HTTPException(status_code=404, detail="Note not found")

    await log_action(
        **_actor(current_admin),
        action_type="note_updated",
        lead_id=note["lead_id"],
        old_value=note["content"],
        new_value=content,
    )
    return JSONResponse({"success": True})


@notes_router.delete("/api/notes/{note_id}")
async def remove_note(note_id: int, current_admin: dict = Depends(auth.get_current_admin)):
    """Delete a note."""
    note = await get_note(note_id)
    if not note or not await delete_note(note_id):
        raise HTTPException(status_code=404, detail="Note not found")

    await log_action(
        **_actor(current_admin),
        action_type="note_deleted",
        lead_id=note["lead_id"],
        old_value=note["content"],
    )
    return JSONResponse({"success": True})


# ========== STUDENTS ROUTES ==========

@students_router.get("/api/students")
async def get_students(
    search: Optional[str] = None,
    status: Optional[str] = None,
    order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    current_admin: dict = Depends(auth.get_current_admin)
):
    """Get students sorted by purchase date, with filtering and pagination."""
    try:
        students = await records_store.list_students()
        filtered = sort_students(filter_students(students, sanitize_input(search, 100), status), order)
        return JSONResponse(paginate([_public_record(s) for s in filtered], page, page_size))
    except Exception as e:
        logger.error(f"Error listing students: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@students_router.put("/api/students/{student_id}")
async def update_student(
    student_id: str,
    updates: Dict = Body(...),
    current_admin: dict = Depends(auth.get_current_admin)
):
    """Update fields of a student."""
    updates = clean_updates(updates, STUDENT_COLUMNS)
    if not updates:
        return JSONResponse({"success": False, "message": "No updates provided"})

    new_status = updates.get("Status")
    if new_status and not is_known_student_status(new_status):
        logger.warning(f"Student {student_id} set to unrecognized status '{new_status}'")

    success = await records_store.update_student(student_id, updates)
    if not success:
        raise HTTPException(status_code=404, detail="Student not found or update failed")

    await log_action(
        **_actor(current_admin),
        action_type="student_updated",
        details=f"Student {student_id}: {updates}",
    )
    return JSONResponse({"success": True, "message": "Student updated successfully"})


# ========== ANALYTICS ROUTES ==========

@analytics_router.get("/api/analytics")
async def get_analytics(
    start: Optional[str] = None,
    end: Optional[str] = None,
    current_admin: dict = Depends(auth.get_current_admin)
):
    """Dashboard statistics for the selected date range."""
    date_range = parse_range(start, end)
    try:
        stats = await AnalyticsService(lead_cache).get_stats(date_range)
        return JSONResponse(stats)
    except Exception as e:
        logger.error(f"Error calculating analytics: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@analytics_router.get("/api/analytics/export")
async def export_analytics(
    format: str = "csv",
    start: Optional[str] = None,
    end: Optional[str] = None,
    current_admin: dict = Depends(auth.get_current_admin)
):
    """Export the per-country matrix."""
    date_range = parse_range(start, end)
    stats = await AnalyticsService(lead_cache).get_stats(date_range)
    try:
        return export_country_matrix(stats["country_matrix"], format)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@analytics_router.get("/api/calendar")
async def get_calendar(
    year: int = Query(..., ge=1, le=9998),
    month: int = Query(..., ge=1, le=12),
    start: Optional[str] = None,
    end: Optional[str] = None,
    current_admin: dict = Depends(auth.get_current_admin)
):
    """Dual-month calendar grid with the given range highlighted."""
    picker = DateRangePicker(on_apply=lambda date_range: None, today=date(year, month, 1))
    picker.selection = parse_range(start, end)
    return JSONResponse({"label": picker.label(), "months": picker.render()})


# ========== LOGS ROUTES ==========

@logs_router.get("/api/logs")
async def get_logs(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    action_type: Optional[str] = None,
    lead_id: Optional[str] = None,
    current_admin: dict = Depends(auth.get_current_admin)
):
    """Get system logs."""
    logs = await get_system_logs(limit, offset, action_type, lead_id)
    return JSONResponse({"logs": logs})


# ========== SYNC ROUTES ==========

@sync_router.get("/api/sync/status")
async def get_sync_status(current_admin: dict = Depends(auth.get_current_admin)):
    """Get Google Sheet sync status."""
    status = await get_latest_sync_status()
    if not status:
        return JSONResponse({
            "sync_time": None,
            "status": "unknown",
            "rows_count": 0,
        })
    return JSONResponse(status)


@sync_router.post("/api/sync/force")
async def force_sync(current_admin: dict = Depends(auth.get_current_admin)):
    """Force a Google Sheet sync."""
    try:
        leads = await lead_cache.reload()
        await save_sync_status("success", rows_count=len(leads))
        await log_action(
            **_actor(current_admin),
            action_type="sync_forced",
            details=f"Forced sync: {len(leads)} rows",
        )
        return JSONResponse({"success": True, "rows_count": len(leads)})
    except Exception as e:
        await save_sync_status("error", error_message=str(e))
        raise HTTPException(status_code=500, detail=str(e))
