"""
thinkly - think a decision through, remember how you made it
"""

__version__ = "0.1.0"
__logo__ = "💭"
