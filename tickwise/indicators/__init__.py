"""Indicator evaluators: the mandatory MACD + RSI baseline and nine extensions."""
