# Routes package init
"""
NoteBoard Backend - API Routes
==============================

Route Inventory:
    - board.py:  /api/board (state, draft, image, previews, notes)
    - auth.py:   /api/auth/sign-out
    - health.py: /health
"""
