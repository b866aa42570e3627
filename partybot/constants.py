"""
Bot-wide constants for the Party Discord Bot.

Policy values and UI settings shared by the service layer and the cogs.
"""

class PartyConstants:
    """Constants related to party rules."""

    # Party names longer than this are rejected
    MAX_NAME_LENGTH = 32

    # Column width for player identities (fits a UUID or a Discord snowflake)
    PLAYER_ID_LENGTH = 36

    # Capability required for looking up another player's party
    LOOKUP_CAPABILITY = "party.lookup"

    # 0 means parties may grow without bound
    UNLIMITED_SIZE = 0

class UIConstants:
    """Constants for Discord UI elements."""

    # Embed colors
    DEFAULT_EMBED_COLOR = 0x3498db  # Blue
    ERROR_COLOR = 0xe74c3c         # Red for errors
    SUCCESS_COLOR = 0x2ecc71       # Green for success
    WARNING_COLOR = 0xf39c12       # Orange for notices and cooldowns

    # Discord caps autocomplete results at 25 choices
    MAX_AUTOCOMPLETE_CHOICES = 25

    PARTY_EMOJI = "🎉"
    CROWN_EMOJI = "👑"  # Marks the party owner
