"""
Map Draft - Two-party map ban/pick coordination service.

Two remote parties pick a venue from a random pool:
- A coin toss decides turn order
- Parties alternate bans and picks
- A side-selection step closes the draft

Every accepted change is broadcast as a full session snapshot so both
parties converge on identical state.
"""

__version__ = "0.1.0"
