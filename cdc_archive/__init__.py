"""
CDC Archive - change-data-capture events archived as flat JSON objects in S3.

This package turns row-level change events (INSERT / MODIFY / REMOVE) from a
source-of-record table into query-engine-friendly objects:

    ┌─────────────┐     ┌──────────────┐     ┌──────────────┐     ┌─────────┐
    │ ChangeEvent │────▶│   Schema     │────▶│   Flatten +  │────▶│   S3    │
    │ (envelope)  │     │  Classifier  │     │   Key derive │     │ PUT/DEL │
    └─────────────┘     └──────────────┘     └──────────────┘     └─────────┘

Archive layout:
    s3://<bucket>/<source>/<schema>/<pk>###<sk>.json

Invariants:
    - One event per invocation, no state shared between invocations
    - At most one archive object per (source, schema, pk, sk)
    - Storage failures are logged and reported, never raised to the caller

How to change safely:
    - Changing the key layout moves every archived object; treat it as a migration
    - New record schemas are added as classifier rules, not code branches
    - Column names must stay stable for the downstream crawler

Version: see _version.py.
"""

from ._version import __version__

__all__ = ["__version__"]
