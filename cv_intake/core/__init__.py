"""
Core CV processing domain.

Job production, storage resolution, the per-job pipeline, batch aggregation
and report dispatch.
"""
