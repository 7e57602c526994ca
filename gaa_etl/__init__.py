"""
ETL framework for Gaelic football match and player statistics workbooks.

This package provides:
- Worksheet classification and truncation-tolerant metadata parsing
- Nested-header field mapping against an enumerated field manifest
- Row extraction with type coercion and multi-layer validation
- Position enrichment from roster sheets and statistical inference
- Idempotent, per-sheet transactional loading into PostgreSQL
- Structured run reports, correlation-id logging and run metrics
"""

__version__ = "1.0.0"
