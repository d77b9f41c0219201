"""
Application layer - Use cases and business logic orchestration.

This layer contains:
- Application services (orchestrate domain + infrastructure)
- Caller identity resolution
- Document reconciliation and visibility filtering wiring

No direct dependencies on frameworks (FastAPI, etc.)
"""
