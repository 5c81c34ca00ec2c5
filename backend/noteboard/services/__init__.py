# Services package init
"""
NoteBoard Backend - Services Layer
==================================

What:  Session state and orchestration between routes and platform clients.

Service Inventory:
    - NoteBoard: Per-session view state (notes, draft, image sub-flow)
    - SessionRegistry: Token → NoteBoard map, owns the shared HTTP client
    - PreviewService: Image validation and local preview files
"""
