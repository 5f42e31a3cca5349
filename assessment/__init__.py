"""
Adaptive assessment and practice engine.

Packages:
- core: errors, clock, enums, judging, events, pagination
- db: SQLAlchemy models and engine/session helpers
- study: question catalog, wrong book, review plan, practice sessions
- exam: exam papers, timed attempts and scoring
- grading: manual grading workflow
- scheduling: background timeout scanning and daily review task generation
- api: FastAPI application
"""

__version__ = "0.1.0"
