"""Registry — index and source-of-truth layer for installed talons.

The registry provides:
- Cataloging: one entry per talon name, persisted as JSON
- Discovery: scan a packages root for talon directories
- Search: case-insensitive text match plus exact tag match
- Reconciliation: report index/disk divergence without mutating either
"""
