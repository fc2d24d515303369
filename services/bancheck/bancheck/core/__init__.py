"""In-process coordination primitives for the join-time ban check.

Core handles:
- Expiring cache: ban decisions with a per-entry TTL
- In-flight guard: at most one pipeline per player slot
- Refresh policy: when a stored profile is stale enough to re-fetch

No I/O in core - stores and the Steam client belong in stores/ and services/.
"""
