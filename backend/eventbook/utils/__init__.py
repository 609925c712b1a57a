from .errors import error_response, not_found
from .fields import read_field, to_decimal, to_flag
