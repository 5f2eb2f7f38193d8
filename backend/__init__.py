"""
Hotel Academy Backend

This package provides the assessment session engine behind the Hotel Academy
staff training platform:
1. Session lifecycle with time limits and automatic completion
2. Answer evaluation for the supported question types
3. Competency reports, proficiency levels and assessment statistics
"""

__version__ = "1.0.0"
