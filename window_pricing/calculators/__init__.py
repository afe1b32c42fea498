"""
Deterministic calculation engine.

Pure Python math. Given measurements, fabric details, and option records,
produce fabric usage (widths, seams, yards, meters) and a priced breakdown.
integrated.py ties the two together with the option store and cache.
"""
