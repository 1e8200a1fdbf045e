# Error taxonomy shared by the codec, the auth gate and the handlers


class AesVaultError(Exception):
    """Base error. Carries the HTTP status the API reports it with."""

    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(AesVaultError):
    # startup only
    default_message = 'Invalid server configuration'


class ValidationError(AesVaultError):
    status_code = 400
    default_message = 'Invalid request'


class Unauthenticated(AesVaultError):
    status_code = 401
    default_message = 'No token provided'


class InvalidCredential(AesVaultError):
    status_code = 403
    default_message = 'Invalid or expired token'


class Forbidden(AesVaultError):
    status_code = 403
    default_message = 'Unauthorized to update this message'


class NotFound(AesVaultError):
    status_code = 404
    default_message = 'Message not found'


class MalformedTokenError(AesVaultError):
    status_code = 400
    default_message = 'Encrypted message is malformed or cannot be decrypted'
