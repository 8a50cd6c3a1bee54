"""
Anatomy quiz assessment engine.

Delivers quizzes to learners, grades heterogeneous answer types and keeps
running statistics for quizzes and learners.
"""

__version__ = "1.0.0"
