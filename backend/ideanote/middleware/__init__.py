# Middleware package init
"""
IdeaNote Backend: Middleware Package
======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Rate Limit first: reject abusive requests before any processing
    2. Request ID: correlation ID for logging and error responses
    3. Logging: request details with the generated request ID
    4. CORS: applied by FastAPI's CORSMiddleware (handles preflight)

    Responses travel back through the chain in reverse order.
"""
