"""Cubicles app package.

Holds the fixed inventory of bookable cubicles laid out on the office
grid, together with the global maintenance flag each cubicle carries.
"""
