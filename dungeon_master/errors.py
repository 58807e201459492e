"""Error taxonomy for a game-master turn.

AuthenticationMissing and ModelUnavailable fail the turn and reach the
caller. DirectiveParseFailure and InvalidDiceSpec are raised inside the
interpreter and swallowed there; only a user-requested roll lets
InvalidDiceSpec escape.
"""


class GameMasterError(Exception):
    """Base class for everything the core raises on purpose."""


class AuthenticationMissing(GameMasterError):
    """No model credential was supplied and none is configured."""


class ModelUnavailable(GameMasterError):
    """The requested model failed and so did the fallback, if one applied."""


class DirectiveParseFailure(GameMasterError):
    """An <<<UPDATE>>> block did not contain a JSON object."""


class InvalidDiceSpec(GameMasterError, ValueError):
    """A die token was missing, non-numeric or not positive."""


class CampaignNotFound(GameMasterError, LookupError):
    pass
