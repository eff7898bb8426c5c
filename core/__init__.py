# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the marketplace rules:
# - models/: Pydantic schemas for data validation
# - services/: Property verification, listing visibility, the pickup
#   request state machine, chat gating and the reputation ledger
#
# Services depend on lib.store.Store, never on a concrete database, and
# raise the API exceptions from app.exceptions.
# =============================================================================
