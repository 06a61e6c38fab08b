"""Services — the imperative shell: event bus, command layer and chat views.

Invariants:
    - Services orchestrate IO (store, bus, latency) around pure core functions
    - Nothing outside services/ and main.py publishes events
"""
