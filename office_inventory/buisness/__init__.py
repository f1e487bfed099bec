"""
Business layer for the office inventory engine.
Holds the workflows that keep stock counts, holdings and unit states consistent,
separated from data persistence concerns.
"""
