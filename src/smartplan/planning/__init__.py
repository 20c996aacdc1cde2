"""
Planning subsystem.

Components:
- planner.py: prompt building, reply parsing/validation, plan -> task drafts
"""
