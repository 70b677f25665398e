import functools
from typing import Callable

from chalice import Response

from chalicelib.utils.exceptions import ErrorKind, ServiceException, status_code_for
from chalicelib.utils.logger import logger, log_exception

UNHANDLED_ERROR_MESSAGE = 'Internal server error'


def error_response(error: Exception, msg: str = "", status_code: int = 400, *args, **kwargs):
    log_exception(error=error, msg=msg, status_code=status_code, *args, **kwargs)
    kind = getattr(error, 'KIND', ErrorKind.UNHANDLED_FAILURE)
    if isinstance(error, ServiceException):
        error_text = str(error)
    else:
        error_text = UNHANDLED_ERROR_MESSAGE
    return Response(
        body={
            'success': False,
            'error': error_text,
            'error_kind': kind.value,
            'exception': error.__class__.__name__ if isinstance(error, ServiceException) else 'Exception',
            'message': error_text,
            'error_id': getattr(logger, 'current_request_id'),
        },
        status_code=status_code,
        headers={'Content-Type': 'application/json'}
    )


def request_exception_handler(func: Callable):
    @functools.wraps(func)
    def result(*args, **kwargs):
        try:
            logger.info(f'Calling function {func.__name__}')
            return func(*args, **kwargs)
        except ServiceException as service_error:
            return error_response(
                error=service_error,
                msg=f'function = {func.__name__} , error = {service_error}',
                status_code=status_code_for(service_error.KIND))
        except Exception as exception:
            return error_response(
                error=exception,
                msg=f'function = {func.__name__}, error = {exception}',
                status_code=status_code_for(ErrorKind.UNHANDLED_FAILURE))
    return result


def log_start_finish(func: Callable):
    @functools.wraps(func)
    def result(*args, **kwargs):
        logger.info(f'{func.__name__} ::: started')
        response = func(*args, **kwargs)
        logger.info(f'{func.__name__} ::: finished')
        return response
    return result
