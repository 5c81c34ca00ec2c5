# Middleware package init
"""
NoteBoard Backend - Middleware Package
======================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - Request ID first, so the access log line carries it
    - Logging captures response status and duration on the way back out
"""
