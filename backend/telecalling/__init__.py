"""
Telecalling CRM backend.

Lead management for a university admissions office: staff track prospective
students through the admissions funnel, log contact attempts and admins
assign leads and review analytics.
"""

__version__ = "1.0.0"
