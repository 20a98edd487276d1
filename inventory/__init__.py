"""
In-memory inventory for the occupancy engine.

The engine itself holds no state. This package plays the caller's role:
- repositories keyed by id, with writes serialized per room
- status recomputation after every guest or room mutation
- deterministic seed generator for evals and tests
"""
