"""
Domain layer - Business logic and domain models.

This layer contains:
- Enums and value objects (immutable, self-validating)
- Domain entities (Application aggregate, ExchangeProgram)
- Document reconciliation and visibility rules (pure functions)
- Unit of Work contract

No dependencies on frameworks (FastAPI, etc.)
"""
