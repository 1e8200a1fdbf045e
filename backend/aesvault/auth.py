# Bearer token issuance and the login_required gate
from dataclasses import dataclass
from functools import wraps

from flask import current_app, g
from flask_jwt_extended import create_access_token, get_jwt, get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import InvalidHeaderError, JWTExtendedException, NoAuthorizationError
from jwt.exceptions import DecodeError, ExpiredSignatureError, InvalidSignatureError, InvalidTokenError

from .errors import InvalidCredential, Unauthenticated


@dataclass(frozen=True)
class CurrentUser:
    id: int
    email: str = None


def issue_token(user):
    """Signed access token identifying the user; expiry comes from JWT_ACCESS_TOKEN_EXPIRES."""
    return create_access_token(identity=str(user.id), additional_claims={'email': user.email})


def _authenticate():
    # InvalidSignatureError subclasses DecodeError, so it has to be caught first
    try:
        verify_jwt_in_request()
    except NoAuthorizationError:
        raise Unauthenticated('No authorization header')
    except InvalidHeaderError:
        raise Unauthenticated('No token provided')
    except (InvalidSignatureError, ExpiredSignatureError):
        raise InvalidCredential()
    except DecodeError:
        raise Unauthenticated('Malformed token')
    except (InvalidTokenError, JWTExtendedException):
        raise InvalidCredential()

    try:
        user_id = int(get_jwt_identity())
    except (TypeError, ValueError):
        raise InvalidCredential()
    return CurrentUser(id=user_id, email=get_jwt().get('email'))


def login_required(fn):
    """Reject the request unless it carries a valid bearer token.
    On success the caller is available as g.current_user.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            g.current_user = _authenticate()
        except (Unauthenticated, InvalidCredential) as e:
            current_app.logger.warning(f'Authentication rejected: {e.message}')
            raise
        return fn(*args, **kwargs)
    return wrapper
