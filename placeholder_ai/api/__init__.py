"""PlaceholderAI API adapter package.

Architectural role:
- Defines the external interaction boundary (HTTP) and the server entrypoint.
- Performs transport-level validation and response shaping.
- Delegates generation bookkeeping to the core layer.

Scope:
- Request lifecycle control for adapter concerns only.
- No direct provider invocation logic is implemented in this package.
"""
