"""
gaa_etl test suite

Test structure:
- tests/unit/        - Fast, isolated unit tests
- tests/integration/ - End-to-end runs (in-memory store; PostgreSQL when TEST_DATABASE_URL is set)
- tests/fixtures/    - Workbook builders
"""
