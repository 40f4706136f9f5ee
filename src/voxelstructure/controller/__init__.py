"""
The CONTROLLER layer holds the logic that reacts to input and time:
the stability engine, the collapse countdown, the action router and the
gesture interpreter.
"""
