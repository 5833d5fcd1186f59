"""Sprouts rules engine: planar point/edge graph with a hierarchical region tree."""
