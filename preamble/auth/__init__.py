from .decorators import login_required
from .routes import auth_bp, init_oauth
from .tokens import current_access_token, current_user

__all__ = ["auth_bp", "current_access_token", "current_user", "init_oauth", "login_required"]
