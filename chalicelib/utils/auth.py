import functools
from typing import Dict, Iterable

import jwt
from chalice.app import Request

from chalicelib.config import get_settings
from chalicelib.constants.constants import ROLE_USER, ROLE_ADMIN
from chalicelib.utils import exceptions as utils_exceptions
from chalicelib.utils.app import error_response
from chalicelib.utils.exceptions import status_code_for
from chalicelib.utils.logger import log_request, logger, set_request_id

KNOWN_ROLES = (ROLE_USER, ROLE_ADMIN)


def get_bearer_token(request: Request) -> str:
    token = request.headers.get('authorization') or ''
    if token.lower().startswith('bearer '):
        token = token[len('bearer '):]
    token = token.strip()
    if not token:
        raise utils_exceptions.NotAuthorizedException('Authorization header is missing')
    return token


def decode_token(token: str) -> Dict:
    """
    Tokens are issued by the identity provider and signed with the shared JWT secret.
    Expected claims: sub (user id), role, optionally name and email
    """
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm],
                            options={'require': ['sub']})
    except jwt.PyJWTError as error:
        raise utils_exceptions.NotAuthorizedException(f'Invalid token: {error}')
    role = claims.get('role', ROLE_USER)
    if role not in KNOWN_ROLES:
        raise utils_exceptions.NotAuthorizedException(f'Unknown role {role}')
    return {
        'user_id': str(claims['sub']),
        'role': role,
        'name': claims.get('name'),
        'email': claims.get('email')
    }


def get_auth_result(request: Request) -> Dict:
    set_request_id(request)
    log_request(request)
    auth_result = decode_token(get_bearer_token(request))
    setattr(request, 'auth_result', auth_result)
    logger.info(f"get_auth_result ::: user_id={auth_result['user_id']} role={auth_result['role']}")
    return auth_result


def check_role(auth_result: Dict, allowed_roles: Iterable[str]):
    if auth_result.get('role') not in allowed_roles:
        raise utils_exceptions.AccessDenied("You don't have permissions to access this resource")


def check_user_access(auth_result: Dict, user_id: str):
    """
    A user can access only their own resources, admin can access resources of any user
    """
    if auth_result.get('role') != ROLE_ADMIN and auth_result.get('user_id') != user_id:
        raise utils_exceptions.AccessDenied("You don't have permissions to access this resource")


def authenticate(func):
    """
    Wrapper for functions which require user's authentication
    """

    @functools.wraps(func)
    def result_auth(*args, **kwargs):
        request = args[0]
        try:
            get_auth_result(request)
        except utils_exceptions.ServiceException as err:
            logger.error(f"authenticate ::: {str(err)}")
            return error_response(err, msg=f'{func.__name__}', status_code=status_code_for(err.KIND))
        result = func(*args, **kwargs)
        logger.info(f'authenticate ::: SUCCESS, func.__name__ {func.__name__}')
        return result

    return result_auth


def authenticate_class(func):
    """
    Wrapper for class methods which require user's authentication.
    Raises instead of returning a response, the endpoint method handles the error
    """

    @functools.wraps(func)
    def result_auth(*args, **kwargs):
        request = args[1]
        try:
            get_auth_result(request)
        except utils_exceptions.ServiceException as err:
            logger.error(f"authenticate_class ::: {str(err)}")
            raise
        return func(*args, **kwargs)

    return result_auth


def admin_only(func):
    """
    Wrapper for endpoints allowed only for admins, should be applied under authenticate
    """

    @functools.wraps(func)
    def result(*args, **kwargs):
        request = args[0]
        check_role(request.auth_result, [ROLE_ADMIN])
        return func(*args, **kwargs)

    return result
