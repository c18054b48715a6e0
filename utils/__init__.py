"""
Shared helpers for the giveaway bot
"""
