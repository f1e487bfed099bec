"""
Services Layer
Read-only query helpers used by routes and dashboards.

Services should:
- Never mutate ledger rows
- Aggregate across models for display
- Be stateless
"""
