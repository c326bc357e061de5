# Services package init
"""
SuiviTens Backend — Services Layer
====================================

Service Inventory:
    - MeasurementService: ownership-scoped measurement CRUD
    - IdentityResolver (abstract): bearer token → user id
    - StaticTokenResolver: fixed token table implementation
"""
