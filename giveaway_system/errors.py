"""
Giveaway Errors
Exception types raised by the giveaway lifecycle engine
"""


class GiveawayError(Exception):
    """Base exception for all giveaway errors"""
    pass


class InvalidDraft(GiveawayError):
    """Raised when a giveaway creation request fails validation"""
    pass


class NotFound(GiveawayError):
    """Raised when no active giveaway matches the given id"""

    def __init__(self, drawing_id):
        self.drawing_id = drawing_id
        super().__init__(f"No active giveaway with id {drawing_id}")


class WrongScope(GiveawayError):
    """Raised when a giveaway belongs to a different server than the caller"""

    def __init__(self, drawing_id, community_ref):
        self.drawing_id = drawing_id
        self.community_ref = community_ref
        super().__init__(
            f"Giveaway {drawing_id} must be managed from the server it runs on"
        )


class IdentifierExhausted(GiveawayError):
    """Raised when no free giveaway id could be generated"""
    pass


class PersistenceError(GiveawayError):
    """Raised when the giveaway snapshot cannot be read or written"""
    pass


class PlatformError(GiveawayError):
    """Raised when a chat platform call fails"""
    pass
