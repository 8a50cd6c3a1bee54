"""
Grading pipeline: evaluator, assembler, attempt grader, statistics updater
and the service facade that wires them to the stores.
"""
