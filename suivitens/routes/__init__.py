# Routes package init
"""
SuiviTens Backend — API Routes Package
========================================

Route Inventory:
    - measurements.py:  GET/POST /api/measurements, GET /api/measurements/range,
                        PUT/DELETE /api/measurements/{id}
    - health.py:        GET /health (and /api/health)

Routes stay thin: extract request data, call the service, shape the response.
"""
