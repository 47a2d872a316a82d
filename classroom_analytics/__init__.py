"""Classroom analytics engine.

Read-side aggregations over assignment progress and tutoring-chat logs:
per-question difficulty, per-student rollups and class-wide distributions.
"""
