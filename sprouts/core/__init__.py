"""Core rules engine (graph, loop detection, regions, and game state).

Kept free of FastAPI concerns so it can be driven by the API routes, scripts, and tests.
"""
