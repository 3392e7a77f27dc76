"""
LIS: Lecture Intelligence System core.

An in-memory educational data store connecting professors and students
around lectures, feedback and grades, with a derivation layer that computes
dashboards (pending feedback, GPA, published grades, silent students) on
demand.
"""

__version__ = "1.0.0"
__author__ = "LIS Development Team"
__description__ = "In-memory lecture feedback and grading core"
