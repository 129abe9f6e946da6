"""
Operator scripts
"""
