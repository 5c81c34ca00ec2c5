"""
NoteBoard Backend - Application Package Initializer
===================================================

What: Marks the `noteboard` directory as a Python package.
Who:  Imported by uvicorn (`uvicorn noteboard.main:app`), pytest and the routes.

Architecture Note:
    The service is a backend-for-frontend. It has no database of its own;
    every note, blob and identity lives on the managed platform.

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   NoteBoard (per-session view state)│  ← draft, image flow, note list
    ├─────────────────────────────────────┤
    │     Platform clients (httpx)        │  ← data, storage, auth contracts
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
