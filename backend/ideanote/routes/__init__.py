# Routes package init
"""
IdeaNote Backend: API Routes Package
======================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - notes.py:   /api/notes CRUD, checklist toggle, image attach, /api/files
    - editor.py:  block-level editing (decode on open, encode on save)
    - health.py:  GET /health

Routes stay thin: they extract request data, call a service or an
EditorSession, and shape the response. Transcoding and persistence logic
live in the services package.
"""
