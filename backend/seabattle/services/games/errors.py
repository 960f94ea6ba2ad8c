"""Errors raised by the game session engine.

Every error carries a stable ``code`` (sent to clients) and a ``kind`` that
groups it as not_found, conflict or validation.
"""


class GameError(Exception):
    code = 'GameError'
    kind = 'error'
    message = 'Game error'

    def __init__(self, message=None):
        super().__init__(message or self.message)

    def to_dict(self):
        return {'code': self.code, 'kind': self.kind, 'errorText': str(self)}


class NotFoundError(GameError):
    kind = 'not_found'


class ConflictError(GameError):
    kind = 'conflict'


class ValidationError(GameError):
    kind = 'validation'


class RoomNotFound(NotFoundError):
    code = 'RoomNotFound'
    message = 'Room not found'


class GameNotFound(NotFoundError):
    code = 'GameNotFound'
    message = 'Game not found'


class PlayerNotFound(NotFoundError):
    code = 'PlayerNotFound'
    message = 'Player not found in game'


class RoomFull(ConflictError):
    code = 'RoomFull'
    message = 'Room is full'


class AlreadyInRoom(ConflictError):
    code = 'AlreadyInRoom'
    message = 'You are already in this room'


class NotYourTurn(ConflictError):
    code = 'NotYourTurn'
    message = 'It is not your turn'


class WrongPhase(ConflictError):
    code = 'WrongPhase'
    message = 'Command not allowed in the current game phase'


class OutOfBounds(ValidationError):
    code = 'OutOfBounds'
    message = 'Coordinates are outside the board'


class InvalidPlacement(ValidationError):
    code = 'InvalidPlacement'
    message = 'Invalid ship placement'

    def __init__(self, reason, message=None):
        self.reason = reason
        super().__init__(message or f'Invalid ship placement: {reason}')

    def to_dict(self):
        payload = super().to_dict()
        payload['reason'] = self.reason
        return payload


class MalformedPayload(ValidationError):
    code = 'MalformedPayload'
    message = 'Invalid command format'


class NotAuthenticated(ConflictError):
    code = 'NotAuthenticated'
    message = 'Player not registered or logged in'


class AccountExists(ConflictError):
    code = 'AccountExists'
    message = 'Player already exists'


class InvalidCredentials(ValidationError):
    code = 'InvalidCredentials'
    message = 'Invalid name or password'


class NotImplementedCommand(GameError):
    code = 'NotImplemented'
    kind = 'unsupported'
    message = 'Command not implemented yet'
