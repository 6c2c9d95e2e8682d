"""
Canoga - Shut the Box rule engine

A deterministic rule engine for the two-player dice game Canoga. Web,
terminal and mobile drivers talk to it through the session layer or the
REST API. The engine provides:
- Boards and combination search
- The per-round turn state machine
- Scoring and the advantage carried between rounds
- A strategy bot for computer players and help suggestions
- Save-file text and rewind history
"""

__version__ = "0.1.0"
