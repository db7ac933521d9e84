"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from solaris.api.v1.endpoints import (absences, accounting, auth, calendar,
                                      meetings, notifications, profiles, system,
                                      time_entries, todos, trainings)

api_router = APIRouter()

# Auth (login, refresh, team members)
api_router.include_router(auth.router)

# Clock and time entries
api_router.include_router(time_entries.router)

# Requests: absences, trainings, meetings
api_router.include_router(absences.router)
api_router.include_router(trainings.router)
api_router.include_router(meetings.router)

# Shared to-dos
api_router.include_router(todos.router)

# In-app notification inbox
api_router.include_router(notifications.router)

# Work profiles, holidays and monthly accounting
api_router.include_router(profiles.router)
api_router.include_router(calendar.router)
api_router.include_router(accounting.router)

# Health, status
api_router.include_router(system.router)
