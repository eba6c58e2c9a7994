"""
Studyplan: a student academic planner backend.

Tracks courses and weighted grade categories, computes per-course
percentages, letter grades and a credit-weighted GPA, and serves them over
a REST API.
"""

__version__ = "1.0.0"
__author__ = "Studyplan Development Team"
__description__ = "Student academic planner with grade aggregation and GPA tracking"
