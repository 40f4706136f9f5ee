"""
The MODEL layer contains pure data structures and state transitions.
It has NO knowledge of Qt, timers or input devices.
It deals with Cubes, Materials, the History log and Transition results.
"""
