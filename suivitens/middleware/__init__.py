# Middleware package init
"""
SuiviTens Backend — Middleware Package
========================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [Bearer Identity] → [GZip] → [CORS] → Route Handler

    1. Request ID first: every later log line can carry the correlation ID
    2. Logging: records status and duration of the whole request
    3. Bearer Identity: attaches request.state.user_id for protected routes
    4. GZip: compresses larger list responses
    5. CORS: FastAPI's CORSMiddleware (handles preflight)
"""
