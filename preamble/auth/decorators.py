from functools import wraps

from ..errors import AuthRequiredError
from .tokens import current_user


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if current_user() is None:
            raise AuthRequiredError()
        return view(*args, **kwargs)

    return wrapped
