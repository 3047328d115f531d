from functools import wraps
from flask import request, g
from classes.exceptions import Unauthorized
from utils.tokens import decode_jwt


def get_request_token():
    """Admin token from the Authorization header, x-admin-token or the cookie."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip()
    return request.headers.get("x-admin-token") or request.cookies.get("access_token")


def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = get_request_token()
        if not token:
            raise Unauthorized("Unauthorized")

        decoded = decode_jwt(token)
        if not decoded or decoded.get("role") != "admin":
            raise Unauthorized("Unauthorized")

        g.user = decoded
        return f(*args, **kwargs)

    return decorated_function
