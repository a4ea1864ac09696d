"""
Gudang Pydantic Schemas
Request/Response models for the API and typed activity-log payloads
"""
