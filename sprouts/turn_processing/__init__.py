"""Move validation and turn-order helpers.

Every move, whether it comes from the API or a test, flows through the same
pre-commit pipeline so rejections look the same everywhere.
"""
