"""
                Restaurant Chat Ordering Bot

A numeric-command chat bot that builds food orders per anonymous
session and hands checkout over to an external payment gateway.

Author: Khalil_Bannouri
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Khalil_Bannouri"
