"""
API Tester - compose, send and save HTTP requests from the terminal
"""

__version__ = "1.0.0"
