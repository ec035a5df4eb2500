"""
Format Module
=============

Output format grammar: parsing and validation of format strings.
"""
