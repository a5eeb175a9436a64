"""Core generation package.

Architectural role:
    Holds the request-coalescing and background-generation logic that sits
    between the HTTP endpoints and the image provider adapter.

Composition:
    - `fingerprint`: Stable id derived from (width, height, text).
    - `records`: Status lifecycle and the `GenerationRecord` type.
    - `result_cache`: TTL store for terminal records.
    - `scheduling`: Clock type and `PeriodicTask` ticker.
    - `coordinator`: Work queue, live record map and the single worker task.

Determinism and side effects:
    Package import itself is deterministic and side-effect free. Runtime side
    effects (background tasks, outbound calls) start only once a coordinator is
    asked to generate on a running event loop.
"""
