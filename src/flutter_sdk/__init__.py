"""Flutter SDK command bridge.

Discovers a Flutter SDK installation, builds ``flutter`` command lines
for each supported operation, supervises the resulting processes, and
routes their output to consoles and machine-mode parsers.
"""

__version__ = "1.0.0"
