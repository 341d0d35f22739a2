"""
Exception types for API Tester
"""


class APITesterError(Exception):
    """Base class for all API Tester errors"""


class StoreUnavailable(APITesterError):
    """The backing database connection is not configured"""


class StoreError(APITesterError):
    """An operation reached the store but failed"""


class ValidationError(APITesterError):
    """Caller supplied malformed input (e.g. an empty id)"""


class ParseError(APITesterError):
    """Local slot contents or a response body are not valid structured data"""


class SendError(APITesterError):
    """The HTTP request could not be sent (DNS, connection, timeout...)"""
