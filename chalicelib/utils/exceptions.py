from enum import Enum

from chalicelib.constants import status_codes

__all__ = ["ErrorKind", "status_code_for", "ServiceException", "NotAuthorizedException", "AccessDenied",
           "ValidationException", "MandatoryFieldsAreNotFilled", "SomeItemsAreNotAvailable",
           "CategoryAlreadyExists", "QuantityLimitExceeded", "InvalidOrderStatus", "PaymentAlreadyCaptured",
           "RecordNotFound", "CategoryNotFound", "MenuItemNotFound", "CartNotFound", "CartItemNotFound",
           "AddressNotFound", "OrderNotFound", "SignatureMismatch", "UpstreamFailure", "PaymentGatewayError",
           "ImageUploadError", "NumberOfRetriesExceeded"]


class ErrorKind(Enum):
    INVALID_INPUT = 'invalid_input'
    NOT_AUTHORIZED = 'not_authorized'
    ACCESS_DENIED = 'access_denied'
    NOT_FOUND = 'not_found'
    SIGNATURE_MISMATCH = 'signature_mismatch'
    UPSTREAM_FAILURE = 'upstream_failure'
    UNHANDLED_FAILURE = 'unhandled_failure'


_status_codes = {
    ErrorKind.INVALID_INPUT: status_codes.http400,
    ErrorKind.NOT_AUTHORIZED: status_codes.http401,
    ErrorKind.ACCESS_DENIED: status_codes.http403,
    ErrorKind.NOT_FOUND: status_codes.http404,
    ErrorKind.SIGNATURE_MISMATCH: status_codes.http400,
    ErrorKind.UPSTREAM_FAILURE: status_codes.http500,
    ErrorKind.UNHANDLED_FAILURE: status_codes.http500,
}


def status_code_for(kind: ErrorKind) -> int:
    return _status_codes[kind]


class ServiceException(Exception):
    KIND = ErrorKind.UNHANDLED_FAILURE
    LEVEL = 'exception'


# Auth exceptions
class NotAuthorizedException(ServiceException):
    KIND = ErrorKind.NOT_AUTHORIZED
    LEVEL = 'warning'


class AccessDenied(ServiceException):
    KIND = ErrorKind.ACCESS_DENIED
    LEVEL = 'warning'


# Validations exceptions
class ValidationException(ServiceException):
    KIND = ErrorKind.INVALID_INPUT
    LEVEL = 'warning'


class MandatoryFieldsAreNotFilled(ValidationException):
    pass


class SomeItemsAreNotAvailable(ValidationException):
    pass


class CategoryAlreadyExists(ValidationException):
    pass


class QuantityLimitExceeded(ValidationException):
    pass


class InvalidOrderStatus(ValidationException):
    pass


class PaymentAlreadyCaptured(ValidationException):
    pass


# DynamoDB exceptions
class RecordNotFound(ServiceException):
    KIND = ErrorKind.NOT_FOUND
    LEVEL = 'warning'


class CategoryNotFound(RecordNotFound):
    pass


class MenuItemNotFound(RecordNotFound):
    pass


class CartNotFound(RecordNotFound):
    pass


class CartItemNotFound(RecordNotFound):
    pass


class AddressNotFound(RecordNotFound):
    pass


class OrderNotFound(RecordNotFound):
    pass


# Payment exceptions
class SignatureMismatch(ServiceException):
    KIND = ErrorKind.SIGNATURE_MISMATCH
    LEVEL = 'warning'


# External services exceptions
class UpstreamFailure(ServiceException):
    KIND = ErrorKind.UPSTREAM_FAILURE
    LEVEL = 'error'


class PaymentGatewayError(UpstreamFailure):
    pass


class ImageUploadError(UpstreamFailure):
    pass


# DB Performance Exception
class NumberOfRetriesExceeded(UpstreamFailure):
    pass
